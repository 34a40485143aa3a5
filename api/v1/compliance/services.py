import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List

from api.v1.resources.crud import ResourceService
from api.v1.workspaces.access import VIEWERS, require_access, validate_assignee
from core.exceptions import NotFound
from models.compliance import ChecklistInstance, ComplianceTemplate

logger = logging.getLogger(__name__)


def with_item_ids(items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [dict(item, id=item.get("id") or f"item-{uuid.uuid4().hex[:12]}") for item in items or []]


def all_completed(items: List[Dict[str, Any]]) -> bool:
    return bool(items) and all(item.get("completed") for item in items)


class TemplateService(ResourceService):
    label = "Template"
    clearable = ("description", "category")

    def prepare(self, db, workspace, user, values, item=None):
        if "items" in values:
            values["items"] = with_item_ids(values["items"])
        return values

    def generate_items(self, db, user, workspace_id: int, ai, prompt: str, industry: str, category):
        """Draft checklist items with AI; nothing is stored."""
        require_access(db, user, workspace_id, VIEWERS)
        drafts = ai.compliance_checklist(prompt, industry, category)
        return with_item_ids([
            {
                "text": str(draft["text"]),
                "required": draft.get("required") is not False,
                "notes": draft.get("notes") or "",
                "completed": False,
                "completed_at": None,
                "completed_by": None,
            }
            for draft in drafts
        ])


class InstanceService(ResourceService):
    label = "Checklist"
    clearable = ("due_date", "assigned_to")

    def prepare(self, db, workspace, user, values, item=None):
        if "assigned_to" in values:
            validate_assignee(db, workspace, values["assigned_to"])
        if values.get("template_id") is not None:
            if not db.query(ComplianceTemplate.id).filter_by(
                id=values["template_id"], workspace_id=workspace.id
            ).first():
                raise NotFound("Template not found")
        if "items" in values:
            values["items"] = with_item_ids(values["items"])
            if all_completed(values["items"]):
                values["status"] = "completed"

        status = values.get("status")
        if status == "completed" and (item is None or item.status != "completed"):
            values["completed_at"] = datetime.utcnow()
        elif status == "in_progress":
            values["completed_at"] = None
        return values

    def from_template(self, db, user, workspace_id: int, template_id: int, values: Dict[str, Any]):
        require_access(db, user, workspace_id, VIEWERS)
        template = db.query(ComplianceTemplate).filter_by(id=template_id, workspace_id=workspace_id).first()
        if not template:
            raise NotFound("Template not found")
        return self.create(db, user, workspace_id, {
            "template_id": template.id,
            "name": values.get("name") or template.name,
            "industry": template.industry,
            "category": template.category,
            "items": [dict(item, completed=False, completed_at=None, completed_by=None)
                      for item in template.items or []],
            "status": "in_progress",
            "due_date": values.get("due_date"),
            "assigned_to": values.get("assigned_to"),
        })


templates = TemplateService(ComplianceTemplate)
instances = InstanceService(ChecklistInstance)
