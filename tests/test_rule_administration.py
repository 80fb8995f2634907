from datetime import datetime
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from spend_categorizer.classifiers.rules import RuleMatcher
from spend_categorizer.domain.patterns import PatternCache
from spend_categorizer.errors import NotFoundError, ValidationError
from spend_categorizer.models import (
    CategorizationRequest,
    CreateCategorizationRuleRequest,
    PatternType,
    UpdateCategorizationRuleRequest,
)
from spend_categorizer.services.rules import RuleAdministration


@pytest.fixture
def cache() -> PatternCache:
    return PatternCache()


@pytest.fixture
def admin(repository, cache) -> RuleAdministration:
    return RuleAdministration(repository, cache)


def _create(category, pattern: str, pattern_type: str = "exact", priority: int = 0):
    return CreateCategorizationRuleRequest(
        category_id=category.id,
        pattern=pattern,
        pattern_type=pattern_type,
        priority=priority,
    )


@pytest.mark.anyio
async def test_create_rule(admin, repository, categories) -> None:
    res = await admin.create(_create(categories["Groceries"], "walmart", priority=10))

    assert res.category_name == "Groceries"
    assert res.pattern_type == PatternType.EXACT
    assert res.priority == 10
    assert res.is_active is True
    assert res.id in repository.rules


@pytest.mark.anyio
@pytest.mark.parametrize(
    "pattern, pattern_type",
    [("", "exact"), ("", "keyword"), ("[a-", "regex"), ("walmart", "glob")],
)
async def test_create_rejects_invalid_patterns(categories, cache, pattern, pattern_type) -> None:
    repo = AsyncMock()
    admin = RuleAdministration(repo, cache)

    with pytest.raises(ValidationError):
        await admin.create(_create(categories["Food"], pattern, pattern_type))

    repo.create_categorization_rule.assert_not_awaited()


@pytest.mark.anyio
async def test_get_and_list_rules(admin, categories) -> None:
    low = await admin.create(_create(categories["Food"], "deli", priority=1))
    high = await admin.create(_create(categories["Coffee"], "latte", priority=9))

    fetched = await admin.get(low.id)
    listed = await admin.list(0, 10)

    assert fetched.pattern == "deli"
    assert [r.id for r in listed] == [high.id, low.id]
    assert [r.id for r in await admin.list(1, 10)] == [low.id]


@pytest.mark.anyio
async def test_list_uses_configured_page_limit(admin, categories, monkeypatch) -> None:
    monkeypatch.setenv("RULES_PAGE_LIMIT", "2")
    for i in range(3):
        await admin.create(_create(categories["Food"], f"shop {i}"))

    assert len(await admin.list()) == 2


@pytest.mark.anyio
@pytest.mark.parametrize("offset, limit", [(-1, 10), (0, 0)])
async def test_list_rejects_bad_pagination(admin, offset, limit) -> None:
    with pytest.raises(ValidationError):
        await admin.list(offset, limit)


@pytest.mark.anyio
async def test_get_unknown_rule(admin) -> None:
    with pytest.raises(NotFoundError):
        await admin.get(uuid4())


@pytest.mark.anyio
async def test_update_merges_only_given_fields(admin, categories) -> None:
    created = await admin.create(_create(categories["Food"], "deli", priority=1))

    updated = await admin.update(created.id, UpdateCategorizationRuleRequest(priority=7))

    assert updated.priority == 7
    assert updated.pattern == "deli"
    assert updated.pattern_type == PatternType.EXACT
    assert updated.is_active is True


@pytest.mark.anyio
async def test_update_revalidates_pattern(admin, repository, categories) -> None:
    created = await admin.create(_create(categories["Food"], r"deli\b", "regex"))

    with pytest.raises(ValidationError):
        await admin.update(created.id, UpdateCategorizationRuleRequest(pattern="(oops"))

    assert repository.rules[created.id].pattern == r"deli\b"


@pytest.mark.anyio
async def test_update_type_only_validates_existing_pattern(admin, categories) -> None:
    created = await admin.create(_create(categories["Food"], "walmart"))

    updated = await admin.update(created.id, UpdateCategorizationRuleRequest(pattern_type="keyword"))

    assert updated.pattern_type == PatternType.KEYWORD
    assert updated.pattern == "walmart"


@pytest.mark.anyio
async def test_update_can_deactivate(admin, repository, categories) -> None:
    created = await admin.create(_create(categories["Food"], "deli"))

    await admin.update(created.id, UpdateCategorizationRuleRequest(is_active=False))

    assert await repository.get_active_categorization_rules() == []


@pytest.mark.anyio
async def test_update_invalidates_compiled_pattern(admin, repository, cache, categories) -> None:
    matcher = RuleMatcher(repository, cache)
    created = await admin.create(_create(categories["Food"], "deli"))
    assert await matcher.classify(CategorizationRequest(description="corner deli")) is not None
    assert created.id in cache

    await admin.update(created.id, UpdateCategorizationRuleRequest(pattern="bakery"))

    assert created.id not in cache
    assert await matcher.classify(CategorizationRequest(description="corner deli")) is None
    assert await matcher.classify(CategorizationRequest(description="corner bakery")) is not None


@pytest.mark.anyio
async def test_update_stamps_updated_at(categories, cache, make_rule) -> None:
    stale = make_rule(categories["Food"], "deli").model_copy(
        update={"created_at": datetime(2020, 1, 1), "updated_at": datetime(2020, 1, 1)}
    )
    repo = AsyncMock()
    repo.get_categorization_rule_by_id.return_value = stale
    repo.get_category_by_id.return_value = categories["Food"]

    res = await RuleAdministration(repo, cache).update(stale.id, UpdateCategorizationRuleRequest(priority=2))

    persisted = repo.update_categorization_rule.await_args.args[0]
    assert persisted.updated_at > datetime(2020, 1, 1)
    assert persisted.created_at == datetime(2020, 1, 1)
    assert res.updated_at == persisted.updated_at


@pytest.mark.anyio
async def test_update_unknown_rule(admin) -> None:
    with pytest.raises(NotFoundError):
        await admin.update(uuid4(), UpdateCategorizationRuleRequest(priority=1))


@pytest.mark.anyio
async def test_delete_rule(admin, cache, categories) -> None:
    created = await admin.create(_create(categories["Food"], "deli"))

    await admin.delete(created.id)

    with pytest.raises(NotFoundError):
        await admin.get(created.id)
    assert created.id not in cache


@pytest.mark.anyio
async def test_delete_unknown_rule_raises(categories, cache) -> None:
    repo = AsyncMock()
    repo.get_categorization_rule_by_id.side_effect = NotFoundError("Categorization rule")
    admin = RuleAdministration(repo, cache)

    with pytest.raises(NotFoundError):
        await admin.delete(uuid4())

    repo.delete_categorization_rule.assert_not_awaited()


@pytest.mark.anyio
async def test_response_for_missing_category(admin) -> None:
    res = await admin.create(
        CreateCategorizationRuleRequest(category_id=uuid4(), pattern="x", pattern_type="exact")
    )

    assert res.category_name == "Unknown"
