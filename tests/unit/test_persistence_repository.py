import pytest

from authzgate.persistence import (
    EnforcerRecord,
    InMemoryPolicyRepository,
    Permission,
    PolicyModel,
    SQLitePolicyRepository,
    load_document,
)


@pytest.mark.asyncio
async def test_sqlite_repository_roundtrip(tmp_path, document):
    repo = SQLitePolicyRepository(tmp_path / "authz.db")
    await load_document(repo, document)

    permission = await repo.get_permission("built-in/p1")
    assert permission is not None
    assert permission.model == "built-in/m1"
    assert permission.resources == ("r2",)
    assert await repo.get_permission("built-in/missing") is None

    by_model = await repo.get_permissions_by_model("built-in", "m1")
    assert [p.id for p in by_model] == ["built-in/p1", "built-in/p2", "built-in/p3"]
    assert await repo.get_permissions_by_model("built-in", "other") == []

    by_resource = await repo.get_permissions_by_resource("r2")
    assert [p.id for p in by_resource] == ["built-in/p1", "built-in/p3"]

    model = await repo.get_model("built-in/m1")
    assert model is not None and model.text == "model m1"

    rules = await repo.get_rules("built-in/a1")
    assert [r.permission_id for r in rules] == ["built-in/p1", "built-in/p2"]
    assert rules[0].values == ("alice", "data1", "read")

    enforcer = await repo.get_enforcer("built-in/e1")
    assert enforcer is not None
    assert enforcer.identity == (await repo.get_permission("built-in/p1")).identity


@pytest.mark.asyncio
async def test_sqlite_save_permission_keeps_position(tmp_path, document):
    repo = SQLitePolicyRepository(tmp_path / "authz.db")
    await load_document(repo, document)

    await repo.save_permission(
        Permission(owner="built-in", name="p1", model="built-in/m1", adapter="built-in/a2")
    )
    by_model = await repo.get_permissions_by_model("built-in", "m1")
    assert [p.id for p in by_model] == ["built-in/p1", "built-in/p2", "built-in/p3"]
    assert by_model[0].adapter == "built-in/a2"
    assert await repo.get_permissions_by_resource("r2") == [by_model[2]]


@pytest.mark.asyncio
async def test_sqlite_replaces_models_and_enforcers(tmp_path):
    repo = SQLitePolicyRepository(tmp_path / "authz.db")
    await repo.save_model(PolicyModel(owner="o", name="m", text="v1"))
    await repo.save_model(PolicyModel(owner="o", name="m", text="v2"))
    await repo.save_enforcer(EnforcerRecord(owner="o", name="e", model="o/m", adapter="o/a"))
    await repo.save_enforcer(EnforcerRecord(owner="o", name="e", model="o/m", adapter="o/b"))
    assert (await repo.get_model("o/m")).text == "v2"
    assert (await repo.get_enforcer("o/e")).adapter == "o/b"


@pytest.mark.asyncio
async def test_inmemory_matches_document(document):
    repo = InMemoryPolicyRepository(document)
    assert [p.id for p in await repo.get_permissions_by_resource("r2")] == [
        "built-in/p1",
        "built-in/p3",
    ]
    assert await repo.get_rules("built-in/unknown") == []
    await repo.add_rules(document.rules[:1])
    assert len(await repo.get_rules("built-in/a1")) == 3
