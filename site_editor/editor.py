"""Edit orchestration: classify, extract, prompt, call the model, parse, apply.

One request moves through

    Idle -> Classifying -> Extracting -> Prompting -> Parsing -> Applying
         -> Succeeded | RetryingFallback -> Succeeded | Failed

and every transition is written to the debug log. Streaming only changes how the
model reply is accumulated; parse/apply/fallback is the same code either way.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from . import config
from . import model as model_mod
from .classify import COLOR, FULL, ScopeClassification, apply_section_hint, classify, is_color_request, is_structural_request
from .document import assemble
from .errors import (
    ApplyError,
    EditTimeout,
    NotConfiguredError,
    ParseError,
    QuotaExceeded,
    UpstreamError,
    ValidationError,
)
from .model_providers import ChatProvider, ModelError, ModelNotConfigured, ModelTimeout
from .output_parser import iter_patch_candidates
from .prompts import build_fallback_prompt, build_messages, build_system_prompt, build_user_content
from .search_replace import apply_proposed_patch
from .section_templates import get_section_template
from .sections import extract_sections
from .usage import UsageStore, hour_bucket, minutes_until_next_hour
from .utils import dbg, dbg_dump
from .validation import validate_document

PARSE_FAILURE_MESSAGE = (
    "AI did not return valid output. Try a simpler prompt "
    "(e.g. 'Change the primary color to #001B2E') or try again."
)
TIMEOUT_MESSAGE = "The AI took too long to respond. Try a smaller, more specific request."

ProgressCallback = Callable[[int], None]


@dataclass(frozen=True)
class EditRequest:
    prompt: str
    html: str = ""
    css: str = ""
    js: str = ""
    images: Tuple[Dict[str, Any], ...] = ()
    history: Tuple[Dict[str, Any], ...] = ()
    section_id: Optional[str] = None
    stream: bool = False

    @classmethod
    def from_body(cls, body: Any) -> "EditRequest":
        """Build a request from a decoded POST body, raising ValidationError on bad input."""
        if not isinstance(body, dict):
            raise ValidationError("Request body must be a JSON object")
        prompt = body.get("prompt")
        template_id = body.get("template")
        if template_id:
            template = get_section_template(str(template_id))
            if template is None:
                raise ValidationError(f"Unknown section template: {template_id}")
            extra = prompt.strip() if isinstance(prompt, str) else ""
            prompt = template.prompt + (f"\n\nAdditional instructions: {extra}" if extra else "")
        if not prompt or not isinstance(prompt, str) or not prompt.strip():
            raise ValidationError("Missing or invalid prompt")
        parts = {}
        for key in ("html", "css", "js"):
            value = body.get(key) or ""
            if not isinstance(value, str):
                raise ValidationError(f"'{key}' must be a string")
            parts[key] = value
        images = body.get("images") or []
        history = body.get("history") or []
        if not isinstance(images, list) or not isinstance(history, list):
            raise ValidationError("'images' and 'history' must be lists")
        section_id = body.get("sectionId")
        if section_id is not None and not isinstance(section_id, str):
            raise ValidationError("'sectionId' must be a string or null")
        return cls(
            prompt=prompt,
            images=tuple(i for i in images if isinstance(i, dict)),
            history=tuple(h for h in history if isinstance(h, dict)),
            section_id=section_id or None,
            stream=bool(body.get("stream")),
            **parts,
        )


@dataclass
class EditResult:
    html: str
    edits_remaining: int
    strategy: str = ""
    css: str = ""
    js: str = ""

    def to_body(self) -> Dict[str, Any]:
        return {"html": self.html, "css": self.css, "js": self.js, "editsRemaining": self.edits_remaining}


@dataclass
class ReplyOutcome:
    """What resolve_reply made of one model reply."""

    document: Optional[str] = None
    strategy: str = ""
    candidates: int = 0
    rejections: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.document is not None


def _transition(state: str, detail: str = "") -> None:
    dbg(f"editor: -> {state}" + (f" ({detail})" if detail else ""))


def resolve_reply(reply: str, full_doc: str) -> ReplyOutcome:
    """Parse a model reply and apply the first candidate patch that lands.

    Candidates are applied to the full document in parser priority order. A
    patched document that fails output validation is skipped.
    """
    outcome = ReplyOutcome()
    for patch in iter_patch_candidates(reply or ""):
        outcome.candidates += 1
        applied = apply_proposed_patch(full_doc, patch)
        if applied is None:
            dbg(f"resolve_reply: {patch.kind} candidate did not apply")
            continue
        patched, strategy = applied
        if config.VALIDATE_OUTPUT:
            check = validate_document(patched, original=full_doc)
            if not check.valid:
                dbg(f"resolve_reply: {strategy} rejected by validation: {check.reason}")
                outcome.rejections.append(check.reason)
                continue
        outcome.document = patched
        outcome.strategy = strategy
        return outcome
    return outcome


def edits_remaining(user_id: str, store: UsageStore, now: Optional[datetime] = None) -> int:
    used = store.get(user_id, hour_bucket(now))
    return max(0, config.EDIT_LIMIT_PER_HOUR - used)


def check_quota(user_id: str, store: UsageStore, now: Optional[datetime] = None) -> str:
    """Raise QuotaExceeded when the user has no edits left this hour; return the hour bucket."""
    bucket = hour_bucket(now)
    used = store.get(user_id, bucket)
    if used >= config.EDIT_LIMIT_PER_HOUR:
        retry_after = minutes_until_next_hour(now)
        _transition("Failed", f"quota {used}/{config.EDIT_LIMIT_PER_HOUR}, retry in {retry_after}m")
        raise QuotaExceeded(retry_after)
    return bucket


def _progress_reporter(on_progress: Optional[ProgressCallback]) -> Optional[Callable[[int], None]]:
    if on_progress is None:
        return None
    step = max(1, config.STREAM_PROGRESS_CHARS)
    state = {"next": step}

    def _report(total_chars: int) -> None:
        if total_chars >= state["next"]:
            state["next"] = (total_chars // step + 1) * step
            on_progress(total_chars)

    return _report


def _call_model(
    messages: List[Dict[str, str]],
    role: str,
    provider: Optional[ChatProvider],
    stream: bool,
    deadline: float,
    on_progress: Optional[ProgressCallback],
) -> str:
    remaining = deadline - time.monotonic()
    if remaining <= 0:
        raise EditTimeout(TIMEOUT_MESSAGE)
    timeout_s = max(1, int(remaining))
    try:
        if provider is None:
            provider = model_mod.get_provider()
        if stream:
            return model_mod.stream_complete(
                messages,
                role=role,
                provider=provider,
                timeout_s=timeout_s,
                on_delta=_progress_reporter(on_progress),
            )
        return model_mod.complete(messages, role=role, provider=provider, timeout_s=timeout_s)
    except ModelTimeout as exc:
        dbg(f"editor: model timeout: {exc}")
        raise EditTimeout(TIMEOUT_MESSAGE) from exc
    except ModelNotConfigured as exc:
        dbg(f"editor: model not configured: {exc}")
        raise NotConfiguredError("AI service not configured") from exc
    except ModelError as exc:
        dbg(f"editor: model error: {exc}")
        raise UpstreamError("Failed to process request") from exc


def run_edit(
    request: EditRequest,
    user_id: str,
    store: UsageStore,
    provider: Optional[ChatProvider] = None,
    now: Optional[datetime] = None,
    on_progress: Optional[ProgressCallback] = None,
    timeout_s: Optional[int] = None,
) -> EditResult:
    """Run one edit. Returns EditResult or raises an EditError subclass.

    The usage counter is incremented only on success.
    """
    _transition("Classifying")
    prompt = request.prompt
    if not isinstance(prompt, str) or not prompt.strip():
        raise ValidationError("Missing or invalid prompt")

    bucket = check_quota(user_id, store, now)

    deadline = time.monotonic() + int(timeout_s or config.GEN_TIMEOUT)
    full_doc = assemble(request.html, request.css, request.js)
    classification = apply_section_hint(
        classify(prompt),
        request.section_id,
        structural=is_structural_request(prompt),
    )
    dbg(f"editor: scope={classification.scope} sections={list(classification.section_ids)}")

    _transition("Extracting")
    extracted = None
    if classification.scope != FULL:
        extracted = extract_sections(full_doc, classification.section_ids, classification.scope)
        if extracted is None:
            dbg("editor: extraction found nothing, sending full document")

    _transition("Prompting")
    system_prompt = build_system_prompt(prompt, classification, extracted is not None)
    user_content = build_user_content(
        extracted.context if extracted else full_doc,
        prompt,
        images=request.images,
        extracted=extracted is not None,
    )
    messages = build_messages(system_prompt, user_content, request.history)
    role = "edit_scoped" if extracted is not None else "edit_full"
    dbg(f"editor: role={role} user_chars={len(user_content)} system_chars={len(system_prompt)}")
    reply = _call_model(messages, role, provider, request.stream, deadline, on_progress)

    _transition("Parsing")
    outcome = resolve_reply(reply, full_doc)

    if not outcome.ok and is_color_request(prompt):
        _transition("RetryingFallback")
        dbg_dump("editor_failed_reply", reply)
        fallback_messages = build_messages(
            build_system_prompt(prompt, ScopeClassification(COLOR), extracted=False),
            build_user_content(full_doc, build_fallback_prompt(prompt, full_doc)),
        )
        reply = _call_model(fallback_messages, "fallback", provider, request.stream, deadline, on_progress)
        outcome = resolve_reply(reply, full_doc)

    if not outcome.ok:
        dbg_dump("editor_unusable_reply", reply)
        _transition("Failed", f"candidates={outcome.candidates} rejections={outcome.rejections}")
        if outcome.rejections:
            raise ApplyError(f"AI output rejected: {outcome.rejections[-1]}")
        if outcome.candidates:
            raise ApplyError(PARSE_FAILURE_MESSAGE)
        raise ParseError(PARSE_FAILURE_MESSAGE)

    _transition("Applying", f"strategy={outcome.strategy}")
    count = store.increment(user_id, bucket)
    _transition("Succeeded", f"edits this hour={count}")
    return EditResult(
        html=outcome.document,
        edits_remaining=max(0, config.EDIT_LIMIT_PER_HOUR - count),
        strategy=outcome.strategy,
    )
