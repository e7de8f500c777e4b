"""End-to-end tests against an in-process fake Skald server.

The server is a small FastAPI app mounted through httpx.ASGITransport,
so requests go through real routing, multipart parsing and streaming
responses without opening a socket.
"""
# pylint: disable=missing-function-docstring  # test names are self-documenting
# pylint: disable=redefined-outer-name  # pytest fixtures injected by name

import json
import uuid
from datetime import datetime, timezone

import httpx
import pytest
from fastapi import FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse

from skald.client import SkaldClient
from skald.exceptions import RemoteError
from skald.models import (
    ChatRequest,
    IdType,
    ListMemosParams,
    MemoData,
    MemoFileData,
    MemoStatus,
    SearchRequest,
    UpdateMemoData,
)
from skald.stream import DoneEvent

API_KEY = "sk_fake"


def build_app() -> FastAPI:  # pylint: disable=too-many-locals
    """A minimal in-memory Skald API."""
    app = FastAPI()
    memos: dict[str, dict] = {}

    def _auth(authorization: str | None) -> None:
        if authorization != f"Bearer {API_KEY}":
            raise HTTPException(status_code=401, detail="Invalid API key")

    def _find(memo_id: str, id_type: str | None) -> dict:
        for memo in memos.values():
            key = memo["client_reference_id"] if id_type == "reference_id" else memo["uuid"]
            if key == memo_id:
                return memo
        raise HTTPException(status_code=404, detail="Memo not found")

    def _store(title: str, content: str, reference_id: str | None, metadata: dict | None) -> str:
        now = datetime.now(timezone.utc).isoformat()
        memo_uuid = str(uuid.uuid4())
        memos[memo_uuid] = {
            "uuid": memo_uuid,
            "created_at": now,
            "updated_at": now,
            "title": title,
            "content": content,
            "summary": content[:20],
            "metadata": metadata or {},
            "client_reference_id": reference_id,
            "tags": [],
            "chunks": [],
        }
        return memo_uuid

    @app.post("/api/v1/memo")
    async def create(request: Request, authorization: str | None = Header(None)):
        _auth(authorization)
        if request.headers["content-type"].startswith("multipart/form-data"):
            form = await request.form()
            upload = form["file"]
            content = (await upload.read()).decode()
            metadata = json.loads(form["metadata"]) if "metadata" in form else None
            memo_uuid = _store(form.get("title") or upload.filename, content, form.get("reference_id"), metadata)
        else:
            body = await request.json()
            memo_uuid = _store(body["title"], body["content"], body.get("reference_id"), body.get("metadata"))
        return {"ok": True, "memo_uuid": memo_uuid}

    @app.get("/api/v1/memo")
    async def list_memos(page: int = 1, page_size: int = 20, authorization: str | None = Header(None)):
        _auth(authorization)
        items = list(memos.values())
        start = (page - 1) * page_size
        return {
            "count": len(items),
            "next": None,
            "previous": None,
            "results": items[start:start + page_size],
        }

    @app.get("/api/v1/memo/{memo_id}")
    async def get(memo_id: str, id_type: str | None = None, authorization: str | None = Header(None)):
        _auth(authorization)
        return _find(memo_id, id_type)

    @app.patch("/api/v1/memo/{memo_id}")
    async def update(memo_id: str, request: Request, id_type: str | None = None,
                     authorization: str | None = Header(None)):
        _auth(authorization)
        memo = _find(memo_id, id_type)
        memo.update(await request.json())
        return {"ok": True}

    @app.delete("/api/v1/memo/{memo_id}")
    async def delete(memo_id: str, id_type: str | None = None, authorization: str | None = Header(None)):
        _auth(authorization)
        memo = _find(memo_id, id_type)
        del memos[memo["uuid"]]
        return Response(status_code=204)

    @app.get("/api/v1/memo/{memo_id}/status")
    async def status(memo_id: str, id_type: str | None = None, authorization: str | None = Header(None)):
        _auth(authorization)
        _find(memo_id, id_type)
        return {"status": "PROCESSED"}

    @app.post("/api/v1/search")
    async def search(request: Request, authorization: str | None = Header(None)):
        _auth(authorization)
        body = await request.json()
        hits = [m for m in memos.values() if body["query"].lower() in m["content"].lower()]
        return {"results": [{
            "memo_uuid": m["uuid"],
            "chunk_uuid": f"{m['uuid']}-0",
            "memo_title": m["title"],
            "memo_summary": m["summary"],
            "content_snippet": m["content"][:40],
            "chunk_content": m["content"],
            "distance": 0.1,
        } for m in hits][:body.get("limit", 10)]}

    @app.post("/api/v1/chat")
    async def chat(request: Request, authorization: str | None = Header(None)):
        _auth(authorization)
        body = await request.json()
        chat_id = body.get("chat_id") or "chat-new"
        answer = ["You ", "asked: ", body["query"]]
        if not body.get("stream"):
            return JSONResponse({"ok": True, "response": "".join(answer), "intermediate_steps": [], "chat_id": chat_id})

        async def frames():
            yield ": ping\n\n"
            for part in answer:
                yield f"data: {json.dumps({'type': 'token', 'content': part})}\n\n"
            yield f"data: {json.dumps({'type': 'done', 'chat_id': chat_id})}\n\n"

        return StreamingResponse(frames(), media_type="text/event-stream")

    return app


@pytest.fixture
async def skald():
    http = httpx.AsyncClient(transport=httpx.ASGITransport(app=build_app()))
    client = SkaldClient(API_KEY, "http://skald.local", http_client=http)
    yield client
    await http.aclose()


async def test_memo_lifecycle(skald: SkaldClient):
    created = await skald.create_memo(MemoData(
        title="Pricing", content="We agreed on annual billing.", reference_id="ext-1",
    ))
    assert created.ok

    memo = await skald.get_memo(created.memo_uuid)
    assert memo.title == "Pricing"

    by_ref = await skald.get_memo("ext-1", IdType.REFERENCE_ID)
    assert by_ref.uuid == created.memo_uuid

    updated = await skald.update_memo("ext-1", UpdateMemoData(title="Pricing v2"), IdType.REFERENCE_ID)
    assert updated.ok
    assert (await skald.get_memo(created.memo_uuid)).title == "Pricing v2"

    status = await skald.check_memo_status(created.memo_uuid)
    assert status.status is MemoStatus.PROCESSED

    listing = await skald.list_memos(ListMemosParams(page=1, page_size=10))
    assert listing.count == 1

    deleted = await skald.delete_memo(created.memo_uuid)
    assert deleted.ok

    with pytest.raises(RemoteError) as excinfo:
        await skald.get_memo(created.memo_uuid)
    assert excinfo.value.status_code == 404
    assert "Memo not found" in excinfo.value.body


async def test_file_upload(skald: SkaldClient):
    created = await skald.create_memo_from_file(MemoFileData(
        file=b"quarterly numbers", filename="q3.txt", metadata={"quarter": 3},
    ))

    memo = await skald.get_memo(created.memo_uuid)

    assert memo.title == "q3.txt"
    assert memo.content == "quarterly numbers"
    assert memo.metadata == {"quarter": 3}


async def test_search(skald: SkaldClient):
    await skald.create_memo(MemoData(title="A", content="The launch is in March."))
    await skald.create_memo(MemoData(title="B", content="Unrelated."))

    result = await skald.search(SearchRequest(query="launch", limit=5))

    assert [r.memo_title for r in result.results] == ["A"]


async def test_chat_and_streamed_chat_agree(skald: SkaldClient):
    request = ChatRequest(query="hello", chat_id="chat-7")

    full = await skald.chat(request)
    transcript = await skald.streamed_chat(request).collect()

    assert full.response == transcript.text == "You asked: hello"
    assert transcript.chat_id == "chat-7"
    assert transcript.completed


async def test_streamed_chat_ends_with_done(skald: SkaldClient):
    events = [event async for event in skald.streamed_chat(ChatRequest(query="q"))]
    assert events[-1] == DoneEvent("chat-new")


async def test_bad_key():
    http = httpx.AsyncClient(transport=httpx.ASGITransport(app=build_app()))
    client = SkaldClient("sk_wrong", "http://skald.local", http_client=http)

    with pytest.raises(RemoteError) as excinfo:
        await client.list_memos()

    assert excinfo.value.status_code == 401
    assert excinfo.value.body == '{"detail":"Invalid API key"}'
    await http.aclose()
