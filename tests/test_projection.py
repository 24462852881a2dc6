from form_responses.models import FileRef
from form_responses.projection import FIELD, FILE, project


def test_dynamic_columns_are_first_seen_union(make_record):
    records = [
        make_record(fields={"A": "1", "B": "2"}),
        make_record(fields={"B": "3", "C": "4"}),
        make_record(fields={"A": "5"}),
    ]
    cols = project(records)
    assert cols.labels[:3] == ["S.No", "Timestamp", "Sector"]
    assert cols.field_labels == ["A", "B", "C"]


def test_projection_is_stable(make_record):
    records = [make_record(fields={"x": "1", "y": "2"}), make_record(fields={"z": "3"})]
    assert project(records) == project(records)


def test_file_columns_come_from_first_record_only(make_record):
    first = make_record(files=[FileRef(field_name="Pitch Deck"), FileRef(field_name="CIN Document")])
    second = make_record(files=[FileRef(field_name="A"), FileRef(field_name="B"), FileRef(field_name="C")])
    cols = project([first, second])
    files = [c for c in cols if c.kind == FILE]
    assert [c.label for c in files] == ["File 1 (Pitch Deck)", "File 2 (CIN Document)"]
    assert [c.file_index for c in files] == [0, 1]


def test_field_named_like_fixed_column_is_not_duplicated(make_record):
    cols = project([make_record(fields={"Sector": "FinTech", "Company": "Acme"})])
    assert cols.labels.count("Sector") == 1
    assert [c.label for c in cols if c.kind == FIELD] == ["Company"]


def test_empty_input_has_only_fixed_columns():
    assert project([]).labels == ["S.No", "Timestamp", "Sector"]
