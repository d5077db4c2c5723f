import pytest

from cli import apply_overrides
from core.config import Config
from core.exceptions import ConfigurationError


def test_overrides_applied():
    config = apply_overrides(
        Config(),
        ["--port", "9000", "--max-redirects", "10", "--timeout", "1.5", "--host", "0.0.0.0"],
    )
    assert config.proxy.port == 9000
    assert config.proxy.host == "0.0.0.0"
    assert config.relay.max_redirects == 10
    assert config.relay.timeout == 1.5


def test_no_overrides_keeps_config():
    config = Config()
    assert apply_overrides(config, []) == config


@pytest.mark.parametrize(
    "args",
    [
        ["--port"],
        ["--verbose", "1"],
        ["--port", "eighty"],
        ["--max-redirects", "-2"],
    ],
)
def test_invalid_overrides(args):
    with pytest.raises(ConfigurationError):
        apply_overrides(Config(), args)
