from io import BytesIO

import pytest
from openpyxl import load_workbook

from form_responses.errors import ExportError
from form_responses.export import DOCUMENTS, RESPONSES, build_workbook, export_store
from form_responses.models import FileRef


def _sheet(artifact):
    wb = load_workbook(BytesIO(artifact.content))
    assert len(wb.sheetnames) == 1
    return wb[wb.sheetnames[0]]


def test_responses_workbook_has_projected_header_and_formulas(make_record):
    records = [
        make_record(
            fields={"Company": "Acme", "Pitch": "x"},
            sector="FinTech",
            files=[FileRef(field_name="Pitch Deck", file_name='The "best" deck.pdf', file_url="https://d/1/view")],
            record_id="r1",
        ),
        make_record(fields={"Founder": "Ada"}, record_id="r2"),
    ]
    artifact = build_workbook(records, RESPONSES)
    assert artifact.filename == "form-responses.xlsx"
    assert artifact.content_type == "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

    ws = _sheet(artifact)
    assert ws.title == "Form Responses"
    header = [c.value for c in ws[1]]
    assert header == ["S.No", "Timestamp", "Sector", "Company", "Pitch", "Founder", "File 1 (Pitch Deck)"]

    first = [c.value for c in ws[2]]
    assert first[0] == 1
    assert first[3] == "Acme"
    assert first[6] == '=HYPERLINK("https://d/1/view","The ""best"" deck.pdf")'

    second = [c.value for c in ws[3]]
    assert second[3] == "N/A" and second[5] == "Ada" and second[6] == "N/A"


def test_answers_starting_with_equals_stay_text(make_record):
    artifact = build_workbook([make_record(fields={"Formula?": "=1+1"})], RESPONSES)
    ws = _sheet(artifact)
    assert ws.cell(row=2, column=4).data_type == "s"


def test_documents_workbook_lists_every_file(make_record):
    records = [
        make_record(
            sector="FinTech",
            record_id="r1",
            files=[
                FileRef(field_name="Pitch Deck", file_name="a.pdf", file_url="https://a"),
                FileRef(field_name="CIN Document", file_name="b.pdf", download_url="https://b"),
            ],
        ),
        make_record(record_id="r2", files=[FileRef(field_name="Deck", file_name="c.pdf", file_path="/srv/c.pdf")]),
        make_record(record_id="r3"),
    ]
    artifact = build_workbook(records, DOCUMENTS)
    assert artifact.filename == "uploaded-documents.xlsx"
    ws = _sheet(artifact)
    assert ws.title == "Uploaded Documents"
    rows = [[c.value for c in r] for r in ws.iter_rows()]
    assert rows[0] == ["S.No", "Response ID", "Timestamp", "Sector", "Field Name", "File Name", "File URL/Path"]
    assert len(rows) == 4
    assert [r[0] for r in rows[1:]] == [1, 2, 3]
    assert [r[1] for r in rows[1:]] == ["r1", "r1", "r2"]
    assert [r[6] for r in rows[1:]] == ["https://a", "https://b", "/srv/c.pdf"]


def test_unknown_variant_fails_the_whole_export(make_record):
    with pytest.raises(ExportError):
        build_workbook([make_record()], "pdf")


def test_export_store_reads_snapshot(store, make_record):
    store.insert(make_record(fields={"Company": "Acme"}))
    ws = _sheet(export_store(store, RESPONSES))
    assert ws.max_row == 2
