import pytest

from streamreaper.conf.config import Config
from streamreaper.conf.rules import ResourceRules, ResourceValue


def test_empty_rules_include_everything():
    rules = ResourceRules()
    assert rules.should_include(ResourceValue(name="anything"))
    assert not rules.uses_tags


def test_include_names_regex():
    rules = ResourceRules.from_config({"include": {"names_regex": ["^dev-", "-tmp$"]}})
    assert rules.should_include(ResourceValue(name="dev-orders"))
    assert rules.should_include(ResourceValue(name="orders-tmp"))
    assert not rules.should_include(ResourceValue(name="prod-orders"))
    assert not rules.should_include(ResourceValue(name=None))


def test_exclude_wins_over_include():
    rules = ResourceRules.from_config({
        "include": {"names_regex": ["^dev-"]},
        "exclude": {"names_regex": ["keep"]},
    })
    assert rules.should_include(ResourceValue(name="dev-a"))
    assert not rules.should_include(ResourceValue(name="dev-keep-a"))


def test_tag_rules():
    rules = ResourceRules.from_config({
        "include": {"tags": {"env": "^(dev|test)$"}},
        "exclude": {"tags": {"protected": "^true$"}},
    })
    assert rules.uses_tags
    assert rules.should_include(ResourceValue(name="a", tags={"env": "dev"}))
    assert not rules.should_include(ResourceValue(name="b", tags={"env": "prod"}))
    assert not rules.should_include(ResourceValue(name="c", tags={"env": "dev", "protected": "true"}))
    assert not rules.should_include(ResourceValue(name="d", tags=None))


def test_from_config_accepts_config_wrapper():
    cfg = Config({"kinesis": {"exclude": {"names_regex": ["^prod"]}, "max_batch_size": 10}})
    rules = ResourceRules.from_config(cfg.kinesis)
    assert not rules.should_include(ResourceValue(name="prod-x"))
    assert rules.should_include(ResourceValue(name="dev-x"))


def test_from_config_none_is_permissive():
    assert ResourceRules.from_config(None).should_include(ResourceValue(name="x"))


def test_invalid_regex_raises_value_error():
    with pytest.raises(ValueError, match=r"Invalid regex '\['"):
        ResourceRules.from_config({"include": {"names_regex": ["["]}})
