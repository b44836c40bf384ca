import re
import pytest
from catalog_acl.evaluator import decide, filter_allowed, first_match
from catalog_acl.models import (
    AccessControlRule,
    AccessControlRules,
    CatalogAccessControlRule,
    Privilege,
    TableAccessControlRule,
    pattern_matches,
)


def catalog_rule(user=".*", catalog=".*", allow=False):
    return CatalogAccessControlRule(user=user, catalog=catalog, allow=allow)


def test_pattern_is_anchored():
    assert pattern_matches(re.compile("alice"), "alice")
    assert not pattern_matches(re.compile("alice"), "alice2")
    assert not pattern_matches(re.compile("alice"), "malice")
    assert not pattern_matches(re.compile("alice"), "alice\n")


def test_pattern_is_case_sensitive_and_unicode():
    assert not pattern_matches(re.compile("alice"), "Alice")
    assert pattern_matches(re.compile("Ɣ+"), "ƔƔƔ")
    # no normalization: precomposed and decomposed forms differ
    assert not pattern_matches(re.compile("\u00e9"), "e\u0301")


def test_default_deny():
    rules = AccessControlRules()
    assert first_match(rules.catalogs, "bob", "hive") is None
    assert decide(rules.catalogs, "bob", ("hive",), lambda r: r.allow) is False


def test_no_matching_rule_denies():
    rules = [catalog_rule(user="alice", catalog="hive", allow=True)]
    assert decide(rules, "bob", ("hive",), lambda r: r.allow) is False
    assert decide(rules, "alice", ("iceberg",), lambda r: r.allow) is False
    assert decide(rules, "alice", ("hive",), lambda r: r.allow) is True


def test_first_match_is_authoritative():
    rules = [
        catalog_rule(catalog="hive", allow=False),
        catalog_rule(user="alice", catalog="hive", allow=True),
    ]
    assert first_match(rules, "alice", "hive") is rules[0]
    assert decide(rules, "alice", ("hive",), lambda r: r.allow) is False


def test_later_rules_consulted_only_when_earlier_do_not_match():
    rules = [
        catalog_rule(user="bob", catalog="hive", allow=False),
        catalog_rule(catalog="hive", allow=True),
    ]
    assert decide(rules, "alice", ("hive",), lambda r: r.allow) is True
    assert decide(rules, "bob", ("hive",), lambda r: r.allow) is False


def test_table_rule_privileges():
    rule = TableAccessControlRule.model_validate(
        {"catalog": "hive", "schema": "sales", "table": "orders", "privileges": ["GRANT_SELECT"]}
    )
    assert rule.matches("bob", "hive", "sales", "orders")
    assert not rule.matches("bob", "hive", "sales", "orders_archive")
    assert rule.grants(Privilege.SELECT)
    assert not rule.grants(Privilege.INSERT)
    assert rule.can_grant(Privilege.SELECT)
    assert not rule.can_grant(Privilege.INSERT)


def test_ownership_grants_everything():
    rule = TableAccessControlRule(privileges=[Privilege.OWNERSHIP])
    assert all(rule.grants(p) for p in Privilege)
    assert all(rule.can_grant(p) for p in Privilege)


def test_wrong_resource_arity_is_rejected():
    with pytest.raises(ValueError):
        catalog_rule().matches("alice", "hive", "extra")


def test_base_rule_cannot_be_instantiated():
    with pytest.raises(TypeError):
        AccessControlRule()


@pytest.mark.parametrize("user", ["alice", "bob", "carol", "ƔƔƔ"])
def test_filter_agrees_with_decide(user):
    rules = [
        catalog_rule(catalog="secret", allow=False),
        catalog_rule(user="alice|bob", catalog="team-.*", allow=True),
        catalog_rule(user="bob", catalog="team-b", allow=False),
        catalog_rule(user="Ɣ+", catalog=".*", allow=True),
    ]
    catalogs = {"secret", "team-a", "team-b", "public", "Ȁ"}

    def allowed(catalog):
        return decide(rules, user, (catalog,), lambda r: r.allow)

    assert filter_allowed(catalogs, allowed) == {c for c in catalogs if allowed(c)}


def test_filter_does_not_stop_at_first_denial():
    rules = [catalog_rule(catalog="a", allow=False), catalog_rule(catalog="b", allow=True)]
    result = filter_allowed(["a", "b", "a"], lambda c: decide(rules, "bob", (c,), lambda r: r.allow))
    assert result == {"b"}


def test_repeated_decisions_are_stable():
    rules = [catalog_rule(user="alice", allow=True)]
    results = {decide(rules, "alice", ("hive",), lambda r: r.allow) for _ in range(10)}
    assert results == {True}
