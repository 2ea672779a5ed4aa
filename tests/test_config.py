import pytest

from aksmcp.config import Config, ConfigError, parse_flags, parse_flags_and_validate

CLUSTER_ID = (
    "/subscriptions/sub-1/resourceGroups/rg-1/providers/"
    "Microsoft.ContainerService/managedClusters/cluster-1"
)


def test_defaults_from_empty_argv():
    cfg = parse_flags([])
    assert cfg.transport == "stdio"
    assert cfg.address == "localhost:8080"
    assert cfg.access_level == "read"
    assert cfg.resource_id_string == ""
    assert cfg.single_cluster_mode is False
    assert cfg.parsed_resource_id is None
    assert cfg == Config()


def test_flags_are_read():
    cfg = parse_flags(["-t", "sse", "--address", "0.0.0.0:9000", "--access-level=admin"])
    assert cfg.transport == "sse"
    assert cfg.address == "0.0.0.0:9000"
    assert cfg.access_level == "admin"


def test_resource_id_enables_single_cluster_mode():
    cfg = parse_flags(["--aks-resource-id", CLUSTER_ID])
    assert cfg.single_cluster_mode is True
    cfg.validate()
    assert cfg.parsed_resource_id.resource_name == "cluster-1"
    assert cfg.parsed_resource_id.is_aks_cluster()


def test_invalid_access_level():
    with pytest.raises(ConfigError, match="invalid access level: root"):
        Config(access_level="root").validate()


def test_invalid_transport():
    with pytest.raises(ConfigError, match="must be either stdio or sse"):
        Config(transport="http").validate()


def test_sse_requires_address():
    with pytest.raises(ConfigError, match="address must be specified"):
        Config(transport="sse", address="").validate()


def test_invalid_resource_id():
    cfg = Config(resource_id_string="not-an-id", single_cluster_mode=True)
    with pytest.raises(ConfigError, match="invalid AKS resource ID: invalid resource ID format"):
        cfg.validate()


def test_single_cluster_mode_without_id():
    with pytest.raises(ConfigError, match="invalid or missing AKS resource ID"):
        Config(single_cluster_mode=True).validate()


def test_parse_and_validate_success():
    cfg = parse_flags_and_validate(["--transport", "sse", "--access-level", "readwrite"])
    assert cfg.transport == "sse"
    assert cfg.access_level == "readwrite"


def test_parse_and_validate_exits_with_code_two(capsys):
    with pytest.raises(SystemExit) as excinfo:
        parse_flags_and_validate(["--transport", "bogus"])
    assert excinfo.value.code == 2
    out = capsys.readouterr().out
    assert "Configuration error: invalid transport: bogus" in out


def test_unknown_flag_exits():
    with pytest.raises(SystemExit) as excinfo:
        parse_flags(["--no-such-flag"])
    assert excinfo.value.code == 2