"""Unit tests for secret injection into config trees."""

import copy
import json

import pytest

from tests.fakes import VAULT_ADDR, FakeVault
from vault_config_client.auth.tokens import Token, TokenHolder
from vault_config_client.core.exceptions import ConfigInjectionError
from vault_config_client.http.executor import RequestExecutor
from vault_config_client.secrets.injection import (
    ConfigInjector,
    SecretRef,
    as_secret_ref,
    find_secret_refs,
    load_secret_refs,
)
from vault_config_client.secrets.operations import SecretOperations

SECRET_A = {"tstStr": "testData", "tstInt": 12345}


@pytest.fixture
def injector(fake_vault: FakeVault) -> ConfigInjector:
    fake_vault.kv["kv-v1/a"] = dict(SECRET_A)
    fake_vault.kv["kv-v1/b"] = {"tst": "ZZZ"}
    ops = SecretOperations(
        RequestExecutor(VAULT_ADDR, fake_vault),
        TokenHolder(Token(client_token="root-token")),
    )
    return ConfigInjector(ops)


class TestSecretRefRecognition:
    """Test marker recognition."""

    def test_secret_ref_instance(self):
        ref = SecretRef(ref="kv-v1/a", key="tstStr")
        assert as_secret_ref(ref) is ref

    def test_mapping_marker(self):
        assert as_secret_ref({"ref": "kv-v1/a", "key": "tstStr"}) == SecretRef("kv-v1/a", "tstStr")

    @pytest.mark.parametrize(
        "value",
        [
            "kv-v1/a",
            {"ref": "kv-v1/a"},
            {"ref": "kv-v1/a", "key": "x", "extra": 1},
            {"ref": "kv-v1/a", "key": 1},
            ["kv-v1/a", "x"],
            None,
        ],
    )
    def test_ordinary_values(self, value):
        assert as_secret_ref(value) is None

    def test_find_refs_depth_first(self):
        tree = {
            "a": {"ref": "p1", "key": "k1"},
            "b": {"c": [1, {"ref": "p2", "key": "k2"}]},
            "d": "plain",
        }

        found = find_secret_refs(tree)

        assert found == [
            (("a",), SecretRef("p1", "k1")),
            (("b", "c", 1), SecretRef("p2", "k2")),
        ]


class TestFillNodeConfig:
    """Test in-place injection."""

    @pytest.mark.asyncio
    async def test_markers_replaced_in_place(self, injector: ConfigInjector):
        config = {
            "deep": {
                "aStr": {"ref": "kv-v1/a", "key": "tstStr"},
                "aInt": SecretRef("/kv-v1/a", "tstInt"),
                "untouched": "keep",
            },
            "b": {"ref": "kv-v1/b", "key": "tst"},
            "port": 8080,
        }
        deep = config["deep"]

        result = await injector.fill_node_config(config)

        assert result is config
        assert config["deep"] is deep
        assert config == {
            "deep": {"aStr": "testData", "aInt": 12345, "untouched": "keep"},
            "b": "ZZZ",
            "port": 8080,
        }
        assert list(config) == ["deep", "b", "port"]
        assert list(config["deep"]) == ["aStr", "aInt", "untouched"]

    @pytest.mark.asyncio
    async def test_markers_inside_lists(self, injector: ConfigInjector):
        config = {"servers": [{"password": {"ref": "kv-v1/b", "key": "tst"}}, "x"]}

        await injector.fill_node_config(config)

        assert config == {"servers": [{"password": "ZZZ"}, "x"]}

    @pytest.mark.asyncio
    async def test_no_markers_is_noop(self, injector: ConfigInjector, fake_vault: FakeVault):
        config = {"deep": {"aStr": "", "aInt": 0}, "b": "NOT WORKING"}
        before = json.dumps(config)

        await injector.fill_node_config(config)

        assert json.dumps(config) == before
        assert fake_vault.requests == []

    @pytest.mark.asyncio
    async def test_same_path_fetched_once(self, injector: ConfigInjector, fake_vault: FakeVault):
        config = {
            "x": {"ref": "kv-v1/a", "key": "tstStr"},
            "y": {"ref": "/kv-v1/a", "key": "tstInt"},
            "z": {"ref": "kv-v1/b", "key": "tst"},
        }

        await injector.fill_node_config(config)

        assert len(fake_vault.requests_to("kv-v1/a")) == 1
        assert len(fake_vault.requests_to("kv-v1/b")) == 1

    @pytest.mark.asyncio
    async def test_shared_reference_values_are_independent(
        self, injector: ConfigInjector, fake_vault: FakeVault
    ):
        fake_vault.kv["kv-v1/c"] = {"obj": {"x": 1}, "items": [1, 2]}
        config = {
            "a": {"ref": "kv-v1/c", "key": "obj"},
            "b": {"ref": "kv-v1/c", "key": "obj"},
            "l1": {"ref": "kv-v1/c", "key": "items"},
            "l2": {"ref": "kv-v1/c", "key": "items"},
        }

        await injector.fill_node_config(config)
        config["a"]["x"] = 99
        config["l1"].append(3)

        assert config["b"] == {"x": 1}
        assert config["l2"] == [1, 2]
        assert config["a"] is not config["b"]

    @pytest.mark.asyncio
    async def test_missing_path_leaves_tree_untouched(self, injector: ConfigInjector):
        config = {
            "good": {"ref": "kv-v1/a", "key": "tstStr"},
            "bad": {"ref": "kv-v1/missing", "key": "x"},
        }
        before = copy.deepcopy(config)

        with pytest.raises(ConfigInjectionError) as exc_info:
            await injector.fill_node_config(config)

        assert config == before
        assert exc_info.value.failures == [
            {"path": "kv-v1/missing", "key": "x", "reason": "path not found"}
        ]
        assert "kv-v1/missing#x" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_all_failures_reported(self, injector: ConfigInjector):
        config = {
            "a": {"ref": "kv-v1/a", "key": "nope"},
            "b": {"ref": "kv-v1/gone", "key": "tst"},
            "c": {"ref": "kv-v1/b", "key": "tst"},
        }
        before = copy.deepcopy(config)

        with pytest.raises(ConfigInjectionError) as exc_info:
            await injector.fill_node_config(config)

        assert config == before
        assert {(f["path"], f["key"], f["reason"]) for f in exc_info.value.failures} == {
            ("kv-v1/a", "nope", "key not found"),
            ("kv-v1/gone", "tst", "path not found"),
        }

    @pytest.mark.asyncio
    async def test_permission_error_is_injection_error(self, fake_vault: FakeVault):
        ops = SecretOperations(
            RequestExecutor(VAULT_ADDR, fake_vault),
            TokenHolder(Token(client_token="s.bogus")),
        )
        config = {"a": {"ref": "kv-v1/a", "key": "tstStr"}}

        with pytest.raises(ConfigInjectionError) as exc_info:
            await ConfigInjector(ops).fill_node_config(config)

        assert "403" in exc_info.value.failures[0]["reason"]
        assert config == {"a": {"ref": "kv-v1/a", "key": "tstStr"}}

    @pytest.mark.asyncio
    async def test_root_marker_rejected(self, injector: ConfigInjector, fake_vault: FakeVault):
        with pytest.raises(ConfigInjectionError):
            await injector.fill_node_config({"ref": "kv-v1/a", "key": "tstStr"})
        assert fake_vault.requests == []


class TestOverrides:
    """Test overlay of a separate reference tree onto a config."""

    @pytest.mark.asyncio
    async def test_overrides_written_at_same_paths(self, injector: ConfigInjector):
        config = {"deep": {"aStr": "", "aInt": 0}, "b": "NOT WORKING"}
        overrides = {
            "deep": {
                "aStr": {"ref": "kv-v1/a", "key": "tstStr"},
                "aInt": {"ref": "kv-v1/a", "key": "tstInt"},
            },
            "b": {"ref": "kv-v1/b", "key": "tst"},
        }

        await injector.fill_node_config(config, overrides)

        assert config == {"deep": {"aStr": "testData", "aInt": 12345}, "b": "ZZZ"}
        assert overrides["b"] == {"ref": "kv-v1/b", "key": "tst"}

    @pytest.mark.asyncio
    async def test_missing_nodes_appended(self, injector: ConfigInjector):
        config = {"first": 1}
        overrides = {"extra": {"nested": {"ref": "kv-v1/b", "key": "tst"}}}

        await injector.fill_node_config(config, overrides)

        assert list(config) == ["first", "extra"]
        assert config["extra"] == {"nested": "ZZZ"}

    @pytest.mark.asyncio
    async def test_empty_overrides(self, injector: ConfigInjector, fake_vault: FakeVault):
        config = {"deep": {"aStr": "", "aInt": 0}, "b": "NOT WORKING"}

        await injector.fill_node_config(config, {})

        assert config == {"deep": {"aStr": "", "aInt": 0}, "b": "NOT WORKING"}
        assert fake_vault.requests == []

    @pytest.mark.asyncio
    async def test_unplaceable_override(self, injector: ConfigInjector, fake_vault: FakeVault):
        config = {"port": 8080}
        overrides = {"port": {"inner": {"ref": "kv-v1/b", "key": "tst"}}}

        with pytest.raises(ConfigInjectionError):
            await injector.fill_node_config(config, overrides)

        assert config == {"port": 8080}
        assert fake_vault.requests == []


class TestLoadSecretRefs:
    def test_yaml(self, tmp_path):
        path = tmp_path / "vault-variables.yaml"
        path.write_text("deep:\n  aStr: {ref: kv-v1/a, key: tstStr}\n")

        assert load_secret_refs(path) == {"deep": {"aStr": {"ref": "kv-v1/a", "key": "tstStr"}}}

    def test_json(self, tmp_path):
        path = tmp_path / "vault-variables.json"
        path.write_text(json.dumps({"b": {"ref": "kv-v1/b", "key": "tst"}}))

        assert load_secret_refs(path) == {"b": {"ref": "kv-v1/b", "key": "tst"}}

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert load_secret_refs(path) == {}
