# models.py
from dataclasses import dataclass, field, replace
from typing import List, Optional


@dataclass(frozen=True)
class RejectionEntry:
    source: str                         # Editor, VA
    message: str
    destination: Optional[str] = None   # Strategist, Editor

    @classmethod
    def from_doc(cls, doc: dict) -> "RejectionEntry":
        return cls(
            source=doc.get("source", ""),
            message=doc.get("message", ""),
            destination=doc.get("destination"),
        )

    def to_doc(self) -> dict:
        doc = {"source": self.source, "message": self.message}
        if self.destination:
            doc["destination"] = self.destination
        return doc


@dataclass(frozen=True)
class Variant:
    id: str
    header_id: str
    name: str = ""
    status: str = "In Progress"
    created_date: str = ""
    review_date: str = ""
    edit_date: str = ""
    comp_date: str = ""
    launch_date: str = ""
    landing_page: str = ""
    target: str = ""
    concept: str = ""
    script_link: str = ""
    video_link: str = ""
    rejection_history: tuple = ()
    review_status: str = ""

    @classmethod
    def from_doc(cls, doc: dict) -> "Variant":
        """Builds a Variant from a stored `variants` document (camelCase keys)."""
        header_id = doc.get("strategyId") or doc.get("headerId") or ""
        return cls(
            id=str(doc.get("id", "")),
            header_id=header_id,
            name=doc.get("name") or "",
            status=doc.get("status") or "In Progress",
            created_date=doc.get("createdDate") or "",
            review_date=doc.get("reviewDate") or "",
            edit_date=doc.get("editDate") or "",
            comp_date=doc.get("compDate") or "",
            launch_date=doc.get("launchDate") or "",
            landing_page=doc.get("landingPage") or "",
            target=doc.get("target") or "",
            concept=doc.get("concept") or "",
            script_link=doc.get("scriptLink") or "",
            video_link=doc.get("videoLink") or "",
            rejection_history=tuple(
                RejectionEntry.from_doc(h) for h in (doc.get("rejectionHistory") or [])
            ),
            review_status=doc.get("reviewStatus") or "",
        )

    def to_doc(self) -> dict:
        """The stored shape. `strategyId` and `headerId` both carry the owner id."""
        return {
            "strategyId": self.header_id,
            "headerId": self.header_id,
            "name": self.name,
            "status": self.status,
            "createdDate": self.created_date,
            "reviewDate": self.review_date,
            "editDate": self.edit_date,
            "compDate": self.comp_date,
            "launchDate": self.launch_date,
            "landingPage": self.landing_page,
            "target": self.target,
            "concept": self.concept,
            "scriptLink": self.script_link,
            "videoLink": self.video_link,
            "rejectionHistory": [h.to_doc() for h in self.rejection_history],
            "reviewStatus": self.review_status,
        }

    def apply(self, updates: dict) -> "Variant":
        """Returns a copy with a partial document update (camelCase keys) merged in."""
        doc = self.to_doc()
        doc.update(updates)
        doc["id"] = self.id
        return Variant.from_doc(doc)


@dataclass(frozen=True)
class StrategyItem:
    id: str
    product: str = ""
    format: str = ""
    description: str = ""
    batch_code: str = ""
    variants: List[Variant] = field(default_factory=list)

    @classmethod
    def from_doc(cls, doc: dict, variants: Optional[List[Variant]] = None) -> "StrategyItem":
        return cls(
            id=str(doc.get("id", "")),
            product=doc.get("product") or "",
            format=doc.get("format") or "",
            description=doc.get("description") or "",
            batch_code=doc.get("batchCode") or "",
            variants=list(variants or []),
        )

    def to_doc(self) -> dict:
        """The stored shape: a strategy document never embeds its variants."""
        doc = {
            "product": self.product,
            "format": self.format,
            "description": self.description,
        }
        if self.batch_code:
            doc["batchCode"] = self.batch_code
        return doc

    def with_variants(self, variants: List[Variant]) -> "StrategyItem":
        return replace(self, variants=list(variants))
