from form_responses.models import FileRef
from form_responses.stats import count_records_with_upload, overview, sector_distribution
from form_responses.store import SubmissionRow


def test_distribution_scenario(store, make_record):
    for sector in ["FinTech", "FinTech", "HealthTech"]:
        store.insert(make_record(sector=sector))
    dist = [(s.sector, s.count) for s in sector_distribution(store)]
    assert dist == [("FinTech", 2), ("HealthTech", 1)]


def test_empty_sector_is_labelled_unknown_only_when_presented(store, make_record):
    rec = store.insert(make_record(sector="Other"))
    # Simulate a legacy row written without a sector.
    with store.session() as s:
        row = s.query(SubmissionRow).filter_by(id=rec.id).one()
        row.sector = ""
        s.commit()
    assert store.sector_counts() == [("", 1)]
    assert sector_distribution(store)[0].sector == "Unknown"


def test_overview_counts_each_record_once_per_counter(store, make_record):
    store.insert(
        make_record(
            sector="FinTech",
            files=[FileRef(field_name="Pitch Deck"), FileRef(field_name="Pitch deck v2"), FileRef(field_name="CIN")],
        )
    )
    store.insert(make_record(sector="EdTech", files=[FileRef(field_name="Company Documents")]))
    store.insert(make_record(sector="EdTech"))

    o = overview(store)
    assert o.total_applications == 3
    assert o.pitch_decks_uploaded == 1
    assert o.cin_documents_uploaded == 2
    assert [(s.sector, s.count) for s in o.top_sectors] == [("EdTech", 2), ("FinTech", 1)]

    d = o.to_dict()
    assert d["totalApplications"] == 3
    assert d["sectorStats"][0] == {"sector": "EdTech", "count": 2}


def test_upload_keywords_are_case_insensitive():
    files = [[{"fieldName": "PITCH"}], [{"fieldName": "other"}], []]
    assert count_records_with_upload(files, ("pitch", "deck")) == 1
