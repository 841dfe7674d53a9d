"""Flow collection and draft slot on top of a key-value store."""

import json
import time
from typing import List, Optional

import structlog

from flowcanvas.exceptions import FlowNotFoundError, FlowValidationError
from flowcanvas.storage.interface import KeyValueStore
from flowcanvas.visual.flow import AutomationFlow, FlowStatus, create_default_flow, utcnow
from flowcanvas.visual.normalize import normalize
from flowcanvas.visual.serializers import load_flow, to_json
from flowcanvas.visual.validation import validate

logger = structlog.get_logger(__name__)

FLOWS_COLLECTION_KEY = "leadsbox_flows"
FLOW_DRAFT_KEY = "automation_draft"


class FlowRepository:
    """Persists flows as a JSON array under one key plus a single draft slot.

    Everything read back is normalized; entries that fail schema checks are
    discarded rather than raised. Concurrent sessions are not coordinated:
    the last write wins.
    """

    def __init__(
        self,
        store: KeyValueStore,
        collection_key: str = FLOWS_COLLECTION_KEY,
        draft_key: str = FLOW_DRAFT_KEY,
    ):
        self.store = store
        self.collection_key = collection_key
        self.draft_key = draft_key

    async def load_collection(self) -> List[AutomationFlow]:
        raw = await self.store.get(self.collection_key)
        if raw is None:
            return []
        try:
            entries = json.loads(raw)
        except ValueError as e:
            logger.warning("collection_rejected", key=self.collection_key, reason=str(e))
            return []
        if not isinstance(entries, list):
            logger.warning("collection_rejected", key=self.collection_key, reason="not a list")
            return []

        flows = []
        for entry in entries:
            flow = load_flow(entry)
            if flow is not None:
                flows.append(flow)
        return flows

    async def _write_collection(self, flows: List[AutomationFlow]) -> None:
        payload = json.dumps([flow.to_dict() for flow in flows], ensure_ascii=False)
        await self.store.set(self.collection_key, payload)

    async def get(self, flow_id: str) -> Optional[AutomationFlow]:
        return next((flow for flow in await self.load_collection() if flow.id == flow_id), None)

    async def require(self, flow_id: str) -> AutomationFlow:
        flow = await self.get(flow_id)
        if flow is None:
            raise FlowNotFoundError(flow_id)
        return flow

    async def save(self, flow: AutomationFlow, require_valid: bool = False) -> AutomationFlow:
        """Upsert ``flow`` into the collection.

        The version is bumped when the graph differs from the stored entry.
        Validation only blocks the write when ``require_valid`` is set or the
        flow is switched ON.
        """
        flow = normalize(flow)
        result = validate(flow)
        if require_valid and not result.ok:
            raise FlowValidationError("Fix automation issues before saving", result.issues)
        if flow.status == FlowStatus.ON and not result.ok:
            raise FlowValidationError("An active automation must pass validation", result.issues)

        flows = await self.load_collection()
        existing = next((item for item in flows if item.id == flow.id), None)
        now = utcnow()

        version = flow.version
        created_at = flow.created_at or now
        if existing is not None:
            version = max(version, existing.version)
            if not existing.same_graph(flow):
                version += 1
            created_at = existing.created_at or created_at

        saved = flow.replace(version=version, created_at=created_at, updated_at=now)
        if existing is not None:
            flows = [saved if item.id == saved.id else item for item in flows]
        else:
            flows.append(saved)

        await self._write_collection(flows)
        logger.info("flow_saved", flow_id=saved.id, version=saved.version, status=saved.status.value)
        return saved

    async def delete(self, flow_id: str) -> bool:
        flows = await self.load_collection()
        remaining = [flow for flow in flows if flow.id != flow_id]
        if len(remaining) == len(flows):
            return False
        await self._write_collection(remaining)
        logger.info("flow_deleted", flow_id=flow_id)
        return True

    async def duplicate(self, flow_id: str) -> AutomationFlow:
        """Copy a stored flow as a new draft."""
        flows = await self.load_collection()
        original = next((flow for flow in flows if flow.id == flow_id), None)
        if original is None:
            raise FlowNotFoundError(flow_id)

        now = utcnow()
        copy = original.replace(
            id=f"{original.id}-copy-{int(time.time() * 1000)}",
            name=f"{original.name} (Copy)",
            status=FlowStatus.DRAFT,
            version=original.version + 1,
            created_at=now,
            updated_at=now,
        )
        flows.append(copy)
        await self._write_collection(flows)
        logger.info("flow_duplicated", flow_id=flow_id, copy_id=copy.id)
        return copy

    async def set_status(self, flow_id: str, status: FlowStatus) -> AutomationFlow:
        """Change a stored flow's status; turning it ON requires a valid flow."""
        flows = await self.load_collection()
        flow = next((item for item in flows if item.id == flow_id), None)
        if flow is None:
            raise FlowNotFoundError(flow_id)

        if status == FlowStatus.ON:
            result = validate(flow)
            if not result.ok:
                logger.info("activation_blocked", flow_id=flow_id, issues=len(result.issues))
                raise FlowValidationError(
                    "Please resolve validation issues before turning it on.", result.issues
                )

        updated = flow.replace(status=status, updated_at=utcnow())
        await self._write_collection([updated if item.id == flow_id else item for item in flows])
        logger.info("flow_status_changed", flow_id=flow_id, status=status.value)
        return updated

    async def toggle(self, flow_id: str) -> AutomationFlow:
        flow = await self.require(flow_id)
        target = FlowStatus.OFF if flow.status == FlowStatus.ON else FlowStatus.ON
        return await self.set_status(flow_id, target)

    async def save_draft(self, flow: AutomationFlow) -> None:
        """Write ``flow`` to the draft slot without validating it."""
        await self.store.set(self.draft_key, to_json(normalize(flow), indent=None))
        logger.debug("draft_saved", flow_id=flow.id)

    async def load_draft(self) -> Optional[AutomationFlow]:
        raw = await self.store.get(self.draft_key)
        if raw is None:
            return None
        flow = load_flow(raw)
        if flow is None:
            logger.warning("draft_rejected", key=self.draft_key)
        return flow

    async def clear_draft(self) -> None:
        await self.store.delete(self.draft_key)

    async def load_or_default(self, flow_id: Optional[str] = None) -> AutomationFlow:
        """Stored flow, else the draft, else a fresh default flow."""
        if flow_id is not None:
            flow = await self.get(flow_id)
            if flow is not None:
                return flow
        draft = await self.load_draft()
        if draft is not None and (flow_id is None or draft.id == flow_id):
            return draft
        return create_default_flow()
