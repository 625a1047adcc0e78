from __future__ import annotations  # Chat-completion gateway shared by the interviewer and the coach

import contextlib
import json
import logging
import os
import re
from typing import Any, Dict, Iterator, List, Optional, Protocol, Sequence, Type, TypeVar

import httpx
from langchain_core.messages import BaseMessage
from langchain_core.prompts import ChatPromptTemplate
from pydantic import BaseModel, ValidationError

from config import LlmRoute


logger = logging.getLogger(__name__)

# LangChain message types that OpenAI-style endpoints name differently
ROLE_NAMES = {"human": "user", "ai": "assistant"}

_FENCE = re.compile(r"^```[\w-]*\s*\n?(?P<body>.*?)\n?\s*```$", re.DOTALL)


class HttpClient(Protocol):  # What the gateway needs from an injected client
    def post(self, url: str, *, json: Dict[str, Any], headers: Dict[str, str], timeout: float) -> "HttpResponse": ...


class HttpResponse(Protocol):
    @property
    def status_code(self) -> int: ...

    def json(self) -> Any: ...

    @property
    def text(self) -> str: ...


class LlmGatewayError(RuntimeError):  # Model call failed or never produced a usable reply
    def __init__(self, message: str, *, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


T = TypeVar("T", bound=BaseModel)


def chat(
    messages: Sequence[Dict[str, str]],
    schema: Type[T],
    *,
    cfg: LlmRoute,
    client: Optional[HttpClient] = None,
    options: Optional[Dict[str, Any]] = None,
    api_key: Optional[str] = None,
) -> T:
    """Send a conversation to the route's model and parse the reply into ``schema``.

    Replies that fail validation are retried up to ``cfg.max_retries`` times with
    a system note naming the problem. Transport and HTTP failures are not retried.
    """

    conversation = _schema_preamble(schema, cfg) + [_checked(message) for message in messages]
    url = f"{cfg.base_url}{cfg.endpoint}"
    headers = _headers(cfg, api_key)
    attempts = cfg.max_retries + 1
    logger.info("Chat completion route=%s model=%s turns=%d", cfg.name, cfg.model, len(conversation))

    problem: Optional[Exception] = None
    with _client_scope(client, cfg.timeout_s) as http:
        for attempt in range(1, attempts + 1):
            outgoing = list(conversation)
            if problem is not None:
                outgoing.append({"role": "system", "content": _retry_hint(problem, cfg.enforce_json)})
            content = _complete(http, url, _payload(cfg, outgoing, options), headers, cfg.timeout_s)
            try:
                parsed = _parse(schema, content)
            except (json.JSONDecodeError, ValidationError) as exc:
                logger.warning("Reply rejected route=%s attempt=%d/%d: %s", cfg.name, attempt, attempts, exc)
                problem = exc
                continue
            logger.debug("Chat completion accepted route=%s attempt=%d", cfg.name, attempt)
            return parsed
    raise LlmGatewayError(f"LLM reply did not match {schema.__name__}") from problem


def prompt_messages(prompt: ChatPromptTemplate, **variables: Any) -> List[Dict[str, str]]:  # LangChain prompt to role/content dicts
    return [_as_dict(message) for message in prompt.format_messages(**variables)]


def strip_code_fences(content: str) -> str:
    text = content.strip()
    match = _FENCE.match(text)
    return match.group("body").strip() if match else text


@contextlib.contextmanager
def _client_scope(client: Optional[HttpClient], timeout: float) -> Iterator[HttpClient]:
    if client is not None:
        yield client
        return
    with httpx.Client(timeout=timeout) as owned:
        yield owned  # type: ignore[misc]


def _complete(
    http: HttpClient, url: str, payload: Dict[str, Any], headers: Dict[str, str], timeout: float
) -> str:
    try:
        response = http.post(url, json=payload, headers=headers, timeout=timeout)
    except Exception as exc:  # noqa: BLE001
        logger.error("LLM transport failure: %s", exc)
        raise LlmGatewayError(f"LLM request failed: {exc}") from exc
    if response.status_code >= 400:
        detail = _error_detail(response)
        logger.error("LLM error status=%s detail=%s", response.status_code, detail)
        raise LlmGatewayError(f"LLM returned status {response.status_code}: {detail}", status=response.status_code)
    try:
        data = response.json()
    except ValueError as exc:
        raise LlmGatewayError("LLM payload was not JSON") from exc
    return _content(data)


def _schema_preamble(schema: Type[BaseModel], cfg: LlmRoute) -> List[Dict[str, str]]:
    if not cfg.enforce_json:
        return []
    described = json.dumps(schema.model_json_schema(), indent=2)
    return [{"role": "system", "content": "Reply with a single JSON object matching this schema:\n" + described}]


def _checked(message: Dict[str, str]) -> Dict[str, str]:
    if not isinstance(message, dict) or not str(message.get("role", "")).strip():
        raise ValueError("Chat messages need a role and content")
    return {"role": str(message["role"]).strip(), "content": str(message.get("content", ""))}


def _headers(cfg: LlmRoute, api_key: Optional[str]) -> Dict[str, str]:  # Session key wins over the route's env var
    headers = {"Content-Type": "application/json"}
    key = api_key or (os.getenv(cfg.api_key_env) if cfg.api_key_env else None)
    if key:
        headers["Authorization"] = f"Bearer {key}"
    headers.update(cfg.extra_headers)
    return headers


def _payload(cfg: LlmRoute, messages: List[Dict[str, str]], options: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"model": cfg.model, "messages": messages}
    sampling = {"temperature": cfg.temperature, "max_tokens": cfg.max_tokens}
    payload.update({name: value for name, value in sampling.items() if value is not None})
    if cfg.response_format:
        payload["response_format"] = {"type": cfg.response_format}
    payload.update(options or {})
    return payload


def _error_detail(response: HttpResponse) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return str(error.get("message") or error)
    return str(error if error is not None else body)[:200]


def _content(data: Any) -> str:  # choices[0].message.content, or a bare {"content": ...}
    if isinstance(data, dict):
        choices = data.get("choices") or [{}]
        first = choices[0] if isinstance(choices[0], dict) else {}
        message = first.get("message") or {}
        content = message.get("content") if isinstance(message, dict) else None
        if isinstance(content, str):
            return content
        if isinstance(data.get("content"), str):
            return data["content"]
    raise LlmGatewayError("LLM response missing content")


def _parse(schema: Type[T], content: str) -> T:
    cleaned = strip_code_fences(content)
    try:
        return schema.model_validate_json(cleaned)
    except (json.JSONDecodeError, ValidationError):
        fallback = getattr(schema, "from_raw_content", None)
        if not callable(fallback):
            raise
        return fallback(cleaned)


def _retry_hint(problem: Exception, enforce_json: bool) -> str:
    reason = str(problem).splitlines()[0].strip()
    if len(reason) > 200:
        reason = reason[:197] + "..."
    wanted = "Return a single JSON object that matches the schema." if enforce_json else "Follow the requested format precisely."
    return f"The previous reply failed validation. Reason: {reason}. {wanted}"


def _as_dict(message: BaseMessage) -> Dict[str, str]:
    content = message.content if isinstance(message.content, str) else json.dumps(message.content)
    return {"role": ROLE_NAMES.get(message.type, message.type), "content": content}
