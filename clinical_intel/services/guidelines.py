import json
import logging
from pathlib import Path

from pydantic import TypeAdapter

from clinical_intel.models.guideline import GuidelineRecord

logger = logging.getLogger(__name__)


class GuidelineNotFoundError(LookupError):
    def __init__(self, topic: str) -> None:
        self.topic = topic
        super().__init__(f"No guidelines found for topic '{topic}'.")


DEFAULT_GUIDELINES = [
    GuidelineRecord(
        guideline_id="GUID-HTN-01",
        topic="hypertension",
        title="2024 ACC/AHA Guideline for the Management of Hypertension",
        source="American College of Cardiology / American Heart Association",
    ),
    GuidelineRecord(
        guideline_id="GUID-DM-01",
        topic="diabetes",
        title="Standards of Care in Diabetes 2024",
        source="American Diabetes Association",
    ),
    GuidelineRecord(
        guideline_id="GUID-HF-01",
        topic="heart failure",
        title="2022 AHA/ACC/HFSA Guideline for the Management of Heart Failure",
        source="American Heart Association / American College of Cardiology / Heart Failure Society of America",
    ),
    GuidelineRecord(
        guideline_id="GUID-AST-01",
        topic="asthma",
        title="Global Strategy for Asthma Management and Prevention",
        source="Global Initiative for Asthma (GINA)",
    ),
    GuidelineRecord(
        guideline_id="GUID-SEP-01",
        topic="sepsis",
        title="Surviving Sepsis Campaign: International Guidelines for Management of Sepsis and Septic Shock 2021",
        source="Society of Critical Care Medicine",
    ),
]


def load_guidelines(path: str | Path) -> list[GuidelineRecord]:
    """Load a guideline catalogue from a JSON array of records.

    Errors propagate: a broken catalogue file should stop startup.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    records = TypeAdapter(list[GuidelineRecord]).validate_python(data)
    logger.info("Loaded %d guideline(s) from %s", len(records), path)
    return records


class GuidelineCatalog:
    def __init__(self, records: list[GuidelineRecord] | None = None) -> None:
        self._records = tuple(DEFAULT_GUIDELINES if records is None else records)

    @classmethod
    def from_path(cls, path: str | None) -> "GuidelineCatalog":
        if not path:
            return cls()
        return cls(load_guidelines(path))

    def __len__(self) -> int:
        return len(self._records)

    def search(self, topic: str) -> list[GuidelineRecord]:
        """Case-insensitive substring match of ``topic`` against each record's topic.

        Raises:
            GuidelineNotFoundError: if nothing matches or ``topic`` is blank.
        """
        query = (topic or "").strip().lower()
        if not query:
            raise GuidelineNotFoundError(topic)
        results = [record for record in self._records if query in record.topic.lower()]
        if not results:
            raise GuidelineNotFoundError(topic)
        return results
