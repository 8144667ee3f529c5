"""アプリケーション組み立てのユニットテスト"""

import pytest
from envflag import (
    AppConfig,
    ConfigError,
    FeatureFlag,
    FeatureFlagErrorCodes,
    FlagApplication,
    InMemoryDocumentStore,
    Is,
    NotFoundError,
    Rule,
    build_application,
)


def make_config(**overrides) -> AppConfig:
    data = {"app": {"name": "envflag-test"}}
    data.update(overrides)
    return AppConfig.model_validate(data)


def test_build_application_with_memory_store() -> None:
    """memory バックエンドで組み立てられること。"""
    app = build_application(make_config())
    assert isinstance(app, FlagApplication)
    assert isinstance(app.store, InMemoryDocumentStore)


def test_unsupported_backend() -> None:
    """未対応のバックエンドは VALIDATION エラー。"""
    with pytest.raises(ConfigError) as exc_info:
        build_application(make_config(store={"backend": "mongodb"}))
    assert exc_info.value.code == FeatureFlagErrorCodes.VALIDATION_ERROR


def test_explicit_store_overrides_backend() -> None:
    """store を渡した場合は設定のバックエンドより優先されること。"""
    store = InMemoryDocumentStore()
    app = build_application(make_config(store={"backend": "mongodb"}), store=store)
    assert app.store is store


async def test_collections_follow_config() -> None:
    """コレクション名が設定に従うこと。"""
    store = InMemoryDocumentStore()
    app = build_application(
        make_config(store={"flags_collection": "ff", "environments_collection": "envs"}),
        store=store,
    )
    await app.flags.create("a", enabled=True)
    await app.environments.create("dev")
    assert len(store.collection("ff")) == 1
    assert len(store.collection("envs")) == 1


async def test_end_to_end_evaluation() -> None:
    """グローバル評価と環境評価の一連の流れ。"""
    app = build_application(make_config(cache={"enabled": False}))
    await app.flags.create("flag_1", "Flag 1", True, [Rule(parameter="tenant", operator=Is("tenant1"))])
    env = await app.environments.create("E")

    context = {"tenant": "tenant1"}
    assert await app.evaluate(context) == {"flag_1": True}
    assert await app.evaluate_environment("E", context) == {"flag_1": True}

    await app.environments.set_flag(env.id, FeatureFlag(name="flag_1", enabled=False))
    assert await app.evaluate_environment("E", context) == {"flag_1": False}
    assert await app.evaluate(context) == {"flag_1": True}

    with pytest.raises(NotFoundError):
        await app.evaluate_environment("missing", context)
