"""Generative-text adapter.

Model output is free-form text. ``decode_json_payload`` isolates the
unreliable part (pulling JSON out of that text) and reports success or
failure as a value; the best-effort operations below turn a failure into a
neutral fallback so callers never see an exception from them.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from openai import OpenAI, OpenAIError

from core.exceptions import AppError, DependencyUnavailable, IntegrationError

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```[a-zA-Z]*\s*")
_OPENERS = {"array": "[", "object": "{"}
_CLOSERS = {"[": "]", "{": "}"}


@dataclass
class DecodeResult:
    ok: bool
    value: Any = None
    error: Optional[str] = None


def _first_balanced(text: str, opener: Optional[str]) -> Optional[str]:
    """Return the first balanced ``[...]`` / ``{...}`` span in ``text``."""
    openers = (opener,) if opener else ("[", "{")
    start = next((i for i, ch in enumerate(text) if ch in openers), None)
    if start is None:
        return None

    stack = []
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in _CLOSERS:
            stack.append(_CLOSERS[ch])
        elif ch in ("]", "}"):
            if not stack or stack.pop() != ch:
                return None
            if not stack:
                return text[start:i + 1]
    return None


def decode_json_payload(text: Optional[str], expect: Optional[str] = None) -> DecodeResult:
    """Extract and parse the first JSON array/object from model output.

    ``expect`` is ``"array"``, ``"object"`` or ``None`` for either. Never raises.
    """
    if not text or not text.strip():
        return DecodeResult(ok=False, error="empty response")

    cleaned = _FENCE_RE.sub("", text).replace("```", "").strip()
    candidate = _first_balanced(cleaned, _OPENERS.get(expect))
    if candidate is None:
        return DecodeResult(ok=False, error="no JSON %s found" % (expect or "value"))

    try:
        value = json.loads(candidate)
    except ValueError as exc:
        return DecodeResult(ok=False, error=f"malformed JSON: {exc}")
    return DecodeResult(ok=True, value=value)


TASK_EXTRACTION_PROMPT = """Analyze this text and extract every actionable task.

Text: "{text}"

Return ONLY a JSON array, no commentary:
[
  {{
    "title": "Task title",
    "description": "What needs to be done",
    "priority": "low|medium|high|urgent",
    "estimatedTime": 60,
    "category": "work|personal|meeting|email|planning|learning|health|other",
    "suggestedDeadline": "YYYY-MM-DD",
    "tags": [],
    "subtasks": [{{"title": "Step 1", "completed": false}}]
  }}
]
Use an empty subtasks array for simple tasks."""

PRIORITIZE_PROMPT = """Prioritize these tasks with the Eisenhower matrix, considering deadlines,
impact and effort.

Tasks: {tasks}

Return the same tasks as a JSON array sorted by "priorityScore" (0-100, highest first),
each with an added "aiInsights" object: {{"priorityReason": "...", "suggestedTime": "...",
"matrix": "urgent-important|important|urgent|delegate|eliminate", "recommendations": []}}.
Return JSON only."""

SUGGEST_PROMPT = """Suggest 5 timely, practical tasks for this user.

Current tasks: {current_tasks}
Role: {role}
Time of day: {time_of_day}
Day of week: {day_of_week}

Return a JSON array of objects with title, description, priority (low|medium|high),
estimatedTime (minutes), category and reasoning. JSON only."""

DAILY_PLAN_PROMPT = """Create a time-blocked schedule for one working day.

Tasks: {tasks}
Working hours: {start} to {end}
Timezone: {timezone}

Put deep work in the morning, admin and meetings in the afternoon, and a break every 90 minutes.
Return a JSON object: {{"summary": "...", "timeBlocks": [{{"startTime": "09:00", "endTime": "10:30",
"taskId": "...", "taskTitle": "...", "type": "deep-work|meeting|admin|break|planning", "notes": "..."}}],
"tips": [], "estimatedProductivity": 80}}. JSON only."""

WEEKLY_PLAN_PROMPT = """Create a weekly schedule for these tasks.

Tasks: {tasks}
Week starting: {week_start}
Work hours: {start} to {end}, {days} days per week
Deep work preference: {deep_work}

Balance the load across days and respect priorities and deadlines.
Return a JSON object: {{"summary": "...", "days": [{{"date": "YYYY-MM-DD", "dayName": "Monday",
"plan": {{"summary": "...", "timeBlocks": [], "tips": []}}}}], "weeklyGoals": [],
"totalEstimatedHours": 0, "balanceScore": 0}}. JSON only."""

MEETING_PREP_PROMPT = """Prepare for this meeting.

Title: {title}
Attendees: {attendees}
Date: {date}
Duration: {duration}
Context: {context}

Return a JSON object with agenda, talkingPoints, questions, backgroundInfo, actionItems,
followUp and timeAllocation. JSON only."""

PRODUCTIVITY_PROMPT = """Analyze productivity from this data.

Completed tasks: {completed}
Time data: {time_data}

Return a JSON object with productivityScore, strengths, improvements, patterns,
recommendations and insights. JSON only."""

WORKSPACE_TEMPLATE_PROMPT = """Design a workspace template for this request: "{prompt}"

Return a JSON object with name (2-4 words), description,
category (personal|work|team|education|health|finance|custom),
default_view (kanban|list|calendar|timeline), theme (light|dark), background_type (color|gradient),
background_value, primary_color, secondary_color, board_configs (2-4 objects with view_type, name
and config.columns) and sample_tasks (3-5 objects with title, description, priority, category).
If the request concerns pubs, hotels, clubs, restaurants or other hospitality venues, include
"Hospitality" in the name; for construction or trades include "Builder". JSON only."""

INDUSTRY_STANDARDS = {
    "hospitality": "liquor and gaming regulation, food safety, hygiene, responsible service of alcohol, "
                   "workplace health and safety, fire safety",
    "construction": "site safety, PPE, machinery checks, scaffolding inspections, fall protection, "
                    "hazardous materials, building codes",
    "healthcare": "infection control, patient safety, medication management, sterilization, "
                  "privacy, emergency response",
    "finance": "anti-money laundering, KYC, data security, financial reporting, audit, cybersecurity",
    "retail": "customer safety, cash handling, inventory security, fire safety, accessibility, "
              "payment card security",
    "manufacturing": "quality control, equipment maintenance, hazardous materials, environmental "
                     "compliance, ISO certification",
    "other": "general workplace health and safety, fire safety, emergency evacuation",
}

CHECKLIST_PROMPT = """You are a compliance expert. Write a checklist of 10-20 specific, actionable items.

Industry: {industry}
Category: {category}
Request: {prompt}
Standards to cover: {standards}

Return ONLY a JSON array: [{{"text": "Check item", "required": true, "notes": "Regulatory reference"}}]"""


class AIContentAdapter:
    def __init__(self, api_key: Optional[str], base_url: Optional[str], model: str,
                 timeout: float = 30.0, client=None):
        self.model = model
        self._client = client
        if self._client is None and api_key:
            self._client = OpenAI(api_key=api_key, base_url=base_url, timeout=timeout)

    @property
    def configured(self) -> bool:
        return self._client is not None

    def generate(self, prompt: str) -> str:
        if not self.configured:
            raise DependencyUnavailable("AI service not configured")
        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
            )
        except OpenAIError as exc:
            logger.warning("AI generation failed: %s", exc)
            raise IntegrationError("Failed to generate content with AI") from exc
        return response.choices[0].message.content or ""

    def _best_effort(self, label: str, prompt: str, expect: str, fallback):
        try:
            text = self.generate(prompt)
        except AppError as exc:
            logger.warning("%s: %s", label, exc.message)
            return fallback
        except Exception:
            logger.exception("%s: unexpected AI client failure", label)
            return fallback

        result = decode_json_payload(text, expect)
        if not result.ok:
            logger.warning("%s: could not decode model output (%s)", label, result.error)
            return fallback
        return result.value

    def _strict(self, label: str, prompt: str, expect: str):
        text = self.generate(prompt)
        result = decode_json_payload(text, expect)
        if not result.ok:
            logger.warning("%s: could not decode model output (%s)", label, result.error)
            raise IntegrationError(f"AI returned an unusable {label}")
        return result.value

    # Best effort: never raise

    def extract_tasks(self, text: str) -> List[Dict[str, Any]]:
        tasks = self._best_effort("task extraction", TASK_EXTRACTION_PROMPT.format(text=text), "array", [])
        return [task for task in tasks if isinstance(task, dict) and task.get("title")]

    def prioritize_tasks(self, tasks: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        prompt = PRIORITIZE_PROMPT.format(tasks=json.dumps(tasks, default=str))
        return self._best_effort("task prioritization", prompt, "array", tasks)

    def suggest_tasks(self, context: Dict[str, Any]) -> List[Dict[str, Any]]:
        prompt = SUGGEST_PROMPT.format(
            current_tasks=json.dumps(context.get("current_tasks") or [], default=str),
            role=context.get("user_role") or "professional",
            time_of_day=context.get("time_of_day") or "morning",
            day_of_week=context.get("day_of_week") or "Monday",
        )
        return self._best_effort("task suggestion", prompt, "array", [])

    def daily_plan(self, tasks: List[Dict[str, Any]], preferences: Optional[Dict[str, Any]] = None):
        preferences = preferences or {}
        hours = preferences.get("working_hours") or {}
        prompt = DAILY_PLAN_PROMPT.format(
            tasks=json.dumps(tasks, default=str),
            start=hours.get("start", "09:00"),
            end=hours.get("end", "17:00"),
            timezone=preferences.get("timezone", "UTC"),
        )
        return self._best_effort("daily plan", prompt, "object", None)

    def weekly_plan(self, tasks: List[Dict[str, Any]], week_start: str,
                    preferences: Optional[Dict[str, Any]] = None):
        preferences = preferences or {}
        prompt = WEEKLY_PLAN_PROMPT.format(
            tasks=json.dumps(tasks, default=str),
            week_start=week_start,
            start=preferences.get("work_start_time", "09:00"),
            end=preferences.get("work_end_time", "17:00"),
            days=preferences.get("work_days_per_week", 5),
            deep_work=preferences.get("deep_work_preference", "morning"),
        )
        return self._best_effort("weekly plan", prompt, "object", None)

    def meeting_prep(self, info: Dict[str, Any]):
        prompt = MEETING_PREP_PROMPT.format(
            title=info.get("title"),
            attendees=info.get("attendees") or "Not specified",
            date=info.get("date") or "TBD",
            duration=info.get("duration") or "30 minutes",
            context=info.get("context") or "No additional context",
        )
        return self._best_effort("meeting prep", prompt, "object", None)

    def productivity_analysis(self, completed_tasks: List[Dict[str, Any]], time_data: Dict[str, Any]):
        prompt = PRODUCTIVITY_PROMPT.format(
            completed=json.dumps(completed_tasks, default=str),
            time_data=json.dumps(time_data, default=str),
        )
        return self._best_effort("productivity analysis", prompt, "object", None)

    # Strict: the AI call is the whole point of the request

    def workspace_template(self, prompt: str) -> Dict[str, Any]:
        return self._strict("workspace template", WORKSPACE_TEMPLATE_PROMPT.format(prompt=prompt), "object")

    def compliance_checklist(self, prompt: str, industry: str, category: Optional[str]) -> List[Dict[str, Any]]:
        items = self._strict("checklist", CHECKLIST_PROMPT.format(
            industry=industry,
            category=category or "General Compliance",
            prompt=prompt,
            standards=INDUSTRY_STANDARDS.get(industry, INDUSTRY_STANDARDS["other"]),
        ), "array")
        return [item for item in items if isinstance(item, dict) and item.get("text")]
