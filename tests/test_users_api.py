import json

import pytest

from users_service import __main__ as entrypoint


JANE = {"id": 123, "lastName": "Doe", "gender": "female", "firstName": "Jane"}


async def test_list_users_on_empty_store_returns_empty_array(api_client) -> None:
    resp = await api_client.get("/users")
    assert resp.status_code == 200
    assert resp.json() == []


async def test_create_user_then_list_returns_it_first(api_client) -> None:
    created = await api_client.post("/users", json=JANE)
    assert created.status_code == 201
    assert created.content == b""

    resp = await api_client.get("/users")
    assert resp.status_code == 200
    assert resp.json() == [JANE]


async def test_users_are_listed_in_insertion_order_with_duplicate_ids(api_client) -> None:
    for last_name in ("Doe", "Roe", "Poe"):
        resp = await api_client.post("/users", json={"id": 7, "lastName": last_name, "gender": "male"})
        assert resp.status_code == 201

    users = (await api_client.get("/users")).json()
    assert [u["lastName"] for u in users] == ["Doe", "Roe", "Poe"]
    assert all(u["id"] == 7 for u in users)


async def test_first_name_is_omitted_when_not_supplied(api_client) -> None:
    resp = await api_client.post("/users", json={"id": 1, "lastName": "Smith", "gender": "unspecified"})
    assert resp.status_code == 201

    users = (await api_client.get("/users")).json()
    assert users == [{"id": 1, "lastName": "Smith", "gender": "unspecified"}]
    assert "firstName" not in users[0]


async def test_unknown_gender_is_rejected_and_store_unchanged(app, api_client) -> None:
    resp = await api_client.post("/users", json={**JANE, "gender": "alien"})
    assert resp.status_code == 422

    assert await app.state.store.list_users() == []
    assert (await api_client.get("/users")).json() == []


async def test_malformed_json_is_a_client_error(api_client) -> None:
    resp = await api_client.post(
        "/users",
        content=b'{"id": 1, "lastName": ',
        headers={"content-type": "application/json"},
    )
    assert resp.status_code == 422


async def test_missing_last_name_is_rejected(api_client) -> None:
    resp = await api_client.post("/users", json={"id": 1, "gender": "female"})
    assert resp.status_code == 422


async def test_oversized_body_is_rejected(app, api_client) -> None:
    padding = "x" * (16 * 1024)
    resp = await api_client.post("/users", json={**JANE, "firstName": padding})
    assert resp.status_code == 413
    assert await app.state.store.list_users() == []


async def test_oversized_chunked_body_is_rejected_while_streaming(app, api_client) -> None:
    async def chunks():
        for _ in range(5):
            yield b"x" * 4096

    resp = await api_client.post("/users", content=chunks(), headers={"content-type": "application/json"})
    assert resp.status_code == 413
    assert resp.request.headers.get("content-length") is None
    assert await app.state.store.list_users() == []


async def test_body_of_exactly_the_limit_is_accepted(app, api_client) -> None:
    compact = {"separators": (",", ":")}
    base = {"id": 1, "lastName": "Doe", "gender": "male", "firstName": ""}
    padding = 16 * 1024 - len(json.dumps(base, **compact))
    body = json.dumps({**base, "firstName": "x" * padding}, **compact).encode()
    assert len(body) == 16 * 1024

    resp = await api_client.post("/users", content=body, headers={"content-type": "application/json"})
    assert resp.status_code == 201
    assert len(await app.state.store.list_users()) == 1


async def test_responses_include_x_request_id(api_client) -> None:
    resp = await api_client.get("/users")
    assert resp.headers.get("x-request-id")


async def test_other_methods_on_users_are_not_allowed(api_client) -> None:
    resp = await api_client.delete("/users")
    assert resp.status_code == 405


def test_entrypoint_runs_uvicorn_with_app_factory(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = []
    monkeypatch.delenv("HOST", raising=False)
    monkeypatch.setattr(entrypoint.uvicorn, "run", lambda *args, **kwargs: calls.append((args, kwargs)))
    monkeypatch.setattr("sys.argv", ["users_service", "--port", "4040"])

    entrypoint.main()

    assert len(calls) == 1
    args, kwargs = calls[0]
    assert args == ("users_service.main:create_app",)
    assert kwargs["factory"] is True
    assert kwargs["host"] == "127.0.0.1"
    assert kwargs["port"] == 4040
