"""
Post Studio core package.

Modules
───────
models      — Pydantic data models (GenerationResult, SummaryResult, SourceItem, ...)
render      — Render Engine: GenerationResult → RenderState → view
view        — UI bindings (MemoryView for headless use, ConsoleView for terminals)
events      — event-stream framing (SSEDecoder, encode_event)
transport   — httpx-backed EventSource delivering named events to listeners
session     — StreamSessionController: one streaming session at a time
sample      — illustrative payload used by the preview action
pipeline    — backend generation job (items → summary → moderation), TTL cached
sources     — X recent-search client
summarizer  — Claude and keyword-heuristic summarisers
moderation  — OpenAI moderation client
cli         — `poststudio generate | preview | serve`
"""
