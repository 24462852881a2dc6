from form_responses.models import FileRef
from form_responses.projection import Column, FIELD, FILE, SECTOR, SEQUENCE, TIMESTAMP
from form_responses.rendering import (
    DISPLAY,
    EXPORT,
    DisplayCell,
    Formula,
    guard_text,
    hyperlink_formula,
    render,
    row_number,
)


def test_missing_field_renders_na_in_both_modes(make_record):
    rec = make_record(fields={"A": "x"})
    col = Column(kind=FIELD, label="Missing")
    assert render(rec, col, EXPORT) == "N/A"
    assert render(rec, col, DISPLAY).text == "N/A"


def test_display_truncates_long_values_but_keeps_title(make_record):
    long = "x" * 60
    rec = make_record(fields={"About": long})
    cell = render(rec, Column(kind=FIELD, label="About"), DISPLAY)
    assert cell.text == "x" * 50 + "..."
    assert cell.title == long
    assert render(rec, Column(kind=FIELD, label="About"), EXPORT) == long


def test_list_answers_are_joined(make_record):
    rec = make_record(fields={"Ids": ["a", "b"], "Empty": []})
    assert render(rec, Column(kind=FIELD, label="Ids"), EXPORT) == "a, b"
    assert render(rec, Column(kind=FIELD, label="Empty"), EXPORT) == "N/A"


def test_fixed_columns(make_record):
    rec = make_record(sector="FinTech", day=2)
    assert render(rec, Column(kind=SEQUENCE, label="S.No"), EXPORT, number=7) == 7
    assert render(rec, Column(kind=SECTOR, label="Sector"), EXPORT) == "FinTech"
    assert render(rec, Column(kind=TIMESTAMP, label="Timestamp"), EXPORT) == "01/02/2025, 09:30:00 AM"


def test_row_number_is_continuous():
    assert row_number(1, 50, 0) == 1
    assert row_number(3, 20, 4) == 45


def test_file_cell_display_and_export(make_record):
    f = FileRef(field_name="Pitch Deck", file_name="deck.pdf", file_url="https://x/view", download_url="https://x/dl")
    rec = make_record(files=[f])
    col = Column(kind=FILE, label="File 1 (Pitch Deck)", file_index=0)

    cell = render(rec, col, DISPLAY)
    assert cell == DisplayCell(text="deck.pdf", title="deck.pdf", href="https://x/view")

    value = render(rec, col, EXPORT)
    assert isinstance(value, Formula)
    assert value == '=HYPERLINK("https://x/view","deck.pdf")'


def test_file_cell_falls_back_to_download_url_and_view_file_label(make_record):
    rec = make_record(files=[FileRef(field_name="Deck", download_url="https://x/dl")])
    col = Column(kind=FILE, label="File 1 (Deck)", file_index=0)
    assert render(rec, col, EXPORT) == '=HYPERLINK("https://x/dl","View File")'
    assert render(rec, col, DISPLAY).text == "View File"


def test_file_without_link_renders_plain_name(make_record):
    rec = make_record(files=[FileRef(field_name="Deck", file_name="local.pdf", file_path="/tmp/local.pdf")])
    col = Column(kind=FILE, label="File 1 (Deck)", file_index=0)
    out = render(rec, col, EXPORT)
    assert out == "local.pdf" and not isinstance(out, Formula)


def test_missing_file_slot_renders_na(make_record):
    rec = make_record(files=[])
    assert render(rec, Column(kind=FILE, label="File 2 (Deck)", file_index=1), EXPORT) == "N/A"
    assert render(rec, Column(kind=FILE, label="File 2 (Deck)", file_index=1), DISPLAY).href is None


def test_quotes_in_file_names_are_doubled():
    formula = hyperlink_formula('https://x/"q"', 'My "final" deck.pdf')
    assert formula == '=HYPERLINK("https://x/""q""","My ""final"" deck.pdf")'
    # Removing every doubled quote leaves exactly the four delimiting quotes.
    assert formula.replace('""', "").count('"') == 4


def test_long_file_names_are_cut_to_the_formula_literal_limit(make_record):
    rec = make_record(files=[FileRef(field_name="Deck", file_name="n" * 304, file_url="https://x/view")])
    value = render(rec, Column(kind=FILE, label="File 1 (Deck)", file_index=0), EXPORT)
    assert isinstance(value, Formula)
    assert value == '=HYPERLINK("https://x/view","' + "n" * 255 + '")'


def test_links_too_long_for_a_formula_export_as_text(make_record):
    link = "https://x/" + "a" * 300
    rec = make_record(files=[FileRef(field_name="Deck", file_name="d.pdf", file_url=link)])
    value = render(rec, Column(kind=FILE, label="File 1 (Deck)", file_index=0), EXPORT)
    assert value == link
    assert not isinstance(value, Formula)
    assert render(rec, Column(kind=FILE, label="File 1 (Deck)", file_index=0), DISPLAY).href == link


def test_guard_text_quotes_formula_like_text_only():
    assert guard_text("=1+1") == "'=1+1"
    assert guard_text("+31 20 123") == "'+31 20 123"
    assert guard_text("-x") == "'-x"
    assert guard_text("@sum") == "'@sum"
    assert guard_text("Acme") == "Acme"
    assert guard_text(5) == 5
    formula = hyperlink_formula("https://x", "d.pdf")
    assert guard_text(formula) is formula
