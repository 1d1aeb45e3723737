"""Tests for the clinical guideline lookup."""

import json

import pytest
from pydantic import ValidationError

from clinical_intel.models.guideline import GuidelineRecord
from clinical_intel.services.guidelines import (
    GuidelineCatalog,
    GuidelineNotFoundError,
    load_guidelines,
)


@pytest.fixture
def catalog():
    return GuidelineCatalog()


def test_search_hypertension(catalog):
    (record,) = catalog.search("hypertension")
    assert record.guideline_id == "GUID-HTN-01"
    assert record.title == "2024 ACC/AHA Guideline for the Management of Hypertension"


def test_search_is_case_insensitive(catalog):
    assert catalog.search("Hypertension") == catalog.search("hypertension")
    assert catalog.search("HYPERTENSION") == catalog.search("hypertension")


def test_substring_match(catalog):
    assert [r.topic for r in catalog.search("fail")] == ["heart failure"]


def test_unknown_topic_raises(catalog):
    with pytest.raises(GuidelineNotFoundError) as exc_info:
        catalog.search("nonexistent-topic-xyz")
    assert str(exc_info.value) == "No guidelines found for topic 'nonexistent-topic-xyz'."
    assert exc_info.value.topic == "nonexistent-topic-xyz"


def test_blank_topic_raises(catalog):
    with pytest.raises(GuidelineNotFoundError):
        catalog.search("   ")


def test_custom_records():
    catalog = GuidelineCatalog([
        GuidelineRecord(guideline_id="G-1", topic="Chronic Kidney Disease", title="KDIGO CKD"),
    ])
    assert len(catalog) == 1
    assert catalog.search("kidney")[0].guideline_id == "G-1"
    with pytest.raises(GuidelineNotFoundError):
        catalog.search("hypertension")


def test_load_guidelines_from_json(tmp_path):
    path = tmp_path / "guidelines.json"
    path.write_text(json.dumps([
        {"guidelineId": "G-COPD", "topic": "copd", "title": "GOLD Report", "source": "GOLD"},
        {"guidelineId": "G-AF", "topic": "atrial fibrillation", "title": "AF Guideline"},
    ]))

    catalog = GuidelineCatalog.from_path(str(path))

    assert len(catalog) == 2
    (record,) = catalog.search("COPD")
    assert record.source == "GOLD"
    assert catalog.search("fibrillation")[0].source is None


def test_from_path_without_path_uses_defaults():
    assert len(GuidelineCatalog.from_path("")) == len(GuidelineCatalog())


def test_malformed_file_raises(tmp_path):
    path = tmp_path / "guidelines.json"
    path.write_text(json.dumps([{"topic": "copd"}]))
    with pytest.raises(ValidationError):
        load_guidelines(path)
