"""環境オーバーレイ評価のユニットテスト"""

import pytest
from envflag import (
    ApplicationError,
    EnvironmentService,
    FeatureFlag,
    FeatureFlagService,
    InMemoryDocumentStore,
    Is,
    IsOneOf,
    NotFoundError,
    OverlayResolver,
    Rule,
    environment_repository,
    feature_flag_repository,
)


@pytest.fixture
def services(store: InMemoryDocumentStore) -> tuple[FeatureFlagService, EnvironmentService]:
    return (
        FeatureFlagService(feature_flag_repository(store)),
        EnvironmentService(environment_repository(store)),
    )


@pytest.fixture
def resolver(services) -> OverlayResolver:
    return OverlayResolver(*services)


FLAG_1_RULES = [Rule(parameter="tenant", operator=Is("tenant1"))]
FLAG_2_RULES = [Rule(parameter="user", operator=IsOneOf(["user_1", "user_2"]))]


async def seed_global_flags(flags: FeatureFlagService) -> None:
    await flags.create("flag_1", "Flag 1", True, FLAG_1_RULES)
    await flags.create("flag_2", "Flag 2", True, FLAG_2_RULES)


async def test_resolve_global(services, resolver: OverlayResolver) -> None:
    """環境指定なしはグローバル有効フラグを評価すること。"""
    flags, _ = services
    await seed_global_flags(flags)
    result = await resolver.resolve({"tenant": "tenant1"})
    assert result == {"flag_1": True, "flag_2": False}


async def test_resolve_global_skips_disabled(services, resolver: OverlayResolver) -> None:
    """無効なグローバルフラグは結果に含まれないこと。"""
    flags, _ = services
    await flags.create("off", enabled=False)
    await flags.create("on", enabled=True)
    assert await resolver.resolve({}) == {"on": True}


async def test_resolve_empty(resolver: OverlayResolver) -> None:
    """フラグがなければ空のマップ。"""
    assert await resolver.resolve({"tenant": "tenant1"}) == {}


async def test_environment_without_override(services, resolver: OverlayResolver) -> None:
    """ローカル定義がなければグローバル評価が使われること。"""
    flags, envs = services
    await seed_global_flags(flags)
    await envs.create("E")
    result = await resolver.resolve({"tenant": "tenant1"}, "E")
    assert result == {"flag_1": True, "flag_2": False}


async def test_local_override_wins(services, resolver: OverlayResolver) -> None:
    """ローカル定義が同名のグローバル定義より優先されること。"""
    flags, envs = services
    await seed_global_flags(flags)
    env = await envs.create("E")
    await envs.set_flag(env.id, FeatureFlag(name="flag_1", enabled=False))
    result = await resolver.resolve({"tenant": "tenant1"}, "E")
    assert result == {"flag_1": False, "flag_2": False}


async def test_local_flag_with_own_rules(services, resolver: OverlayResolver) -> None:
    """ローカル定義のルールで評価されること。"""
    flags, envs = services
    await seed_global_flags(flags)
    env = await envs.create("E")
    await envs.set_flag(
        env.id,
        FeatureFlag(name="flag_2", enabled=True, rules=[Rule(parameter="tenant", operator=Is("tenant1"))]),
    )
    result = await resolver.resolve({"tenant": "tenant1"}, "E")
    assert result == {"flag_1": True, "flag_2": True}


async def test_local_only_flag_surfaces(services, resolver: OverlayResolver) -> None:
    """グローバルに存在しないローカルフラグも結果に含まれること。"""
    flags, envs = services
    await flags.create("global", enabled=True)
    await flags.create("disabled_global", enabled=False)
    env = await envs.create("E")
    await envs.set_flag(env.id, FeatureFlag(name="local", enabled=True))
    await envs.set_flag(env.id, FeatureFlag(name="local_off", enabled=False))
    result = await resolver.resolve({}, "E")
    assert result == {"global": True, "local": True, "local_off": False}


async def test_missing_environment_raises(services, resolver: OverlayResolver) -> None:
    """存在しない環境名は NotFoundError で、グローバル評価に縮退しないこと。"""
    flags, _ = services
    await seed_global_flags(flags)
    with pytest.raises(NotFoundError):
        await resolver.resolve({"tenant": "tenant1"}, "missing")


async def test_resolution_is_deterministic(services, resolver: OverlayResolver) -> None:
    """同じ状態・コンテキストなら同じ結果になること。"""
    flags, envs = services
    await seed_global_flags(flags)
    await envs.create("E")
    context = {"tenant": "tenant1", "user": ["user_1", "user_2"]}
    first = await resolver.resolve(context, "E")
    second = await resolver.resolve(context, "E")
    assert first == second == {"flag_1": True, "flag_2": True}


async def test_cache_reflects_writes(services, resolver: OverlayResolver) -> None:
    """フラグの書き込み後の評価に変更が反映されること。"""
    flags, _ = services
    flag = await flags.create("flag_1", enabled=True)
    assert await resolver.resolve({}) == {"flag_1": True}
    await flags.update(flag.id, enabled=False)
    assert await resolver.resolve({}) == {}


async def test_store_failure_surfaces_application_error(failing_store) -> None:
    """ストア障害は ApplicationError として呼び出し元に伝わること。"""
    resolver = OverlayResolver(
        FeatureFlagService(feature_flag_repository(failing_store)),
        EnvironmentService(environment_repository(failing_store)),
    )
    with pytest.raises(ApplicationError):
        await resolver.resolve({})
    with pytest.raises(ApplicationError):
        await resolver.resolve({}, "E")


async def test_corrupt_document_surfaces_application_error(
    store: InMemoryDocumentStore, corrupt_flag_id: str
) -> None:
    """保存済みドキュメントが壊れていれば ApplicationError として伝わること。"""
    resolver = OverlayResolver(
        FeatureFlagService(feature_flag_repository(store)),
        EnvironmentService(environment_repository(store)),
    )
    with pytest.raises(ApplicationError) as exc_info:
        await resolver.resolve({"tenant": "tenant1"})
    assert exc_info.value.__cause__ is not None
