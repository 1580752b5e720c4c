import logging

import pytest

from edm_version_sniffer.models import ManagedEntry, RequestedDependency
from edm_version_sniffer.sniffer import (
    UnmanagedDependencyError,
    apply_outcomes,
    sniff_dependency_versions,
)
from edm_version_sniffer.resolver import build_catalog, resolve

_LOGGER = "edm_version_sniffer.sniffer"

MANAGED = [
    ManagedEntry(group_id="org.slf4j", artifact_id="slf4j-api", version="2.0.13"),
    ManagedEntry(group_id="org.junit", artifact_id="junit-bom"),
]


def _messages(caplog: pytest.LogCaptureFixture, level: int) -> list[str]:
    return [r.getMessage() for r in caplog.records if r.levelno == level and r.name == _LOGGER]


def test_resolved_dependency_publishes_property_and_logs(caplog: pytest.LogCaptureFixture):
    caplog.set_level(logging.DEBUG, logger=_LOGGER)
    props: dict[str, str] = {"existing": "kept"}
    report = sniff_dependency_versions(
        MANAGED,
        [RequestedDependency(group_id="org.slf4j", artifact_id="slf4j-api", scope="runtime")],
        properties=props,
    )

    assert props == {"existing": "kept", "org.slf4j:slf4j-api.version": "2.0.13"}
    assert report.properties == {"org.slf4j:slf4j-api.version": "2.0.13"}
    assert report.warnings == []
    assert _messages(caplog, logging.INFO) == [
        "found managed dependency: org.slf4j:slf4j-api",
        "extend management dependency with: org.slf4j:slf4j-api:2.0.13 { scope: runtime }",
    ]


def test_unmanaged_without_version_warns_and_continues(caplog: pytest.LogCaptureFixture):
    caplog.set_level(logging.DEBUG, logger=_LOGGER)
    report = sniff_dependency_versions(
        MANAGED,
        [
            RequestedDependency(group_id="org.junit", artifact_id="junit-bom"),
            RequestedDependency(group_id="org.slf4j", artifact_id="slf4j-api"),
        ],
    )

    expected = "No managed dependency found for org.junit:junit-bom - ignoring dependency in case of missing version"
    assert _messages(caplog, logging.WARNING) == [expected]
    assert report.warnings == [expected]
    assert report.unmanaged_keys == ["org.junit:junit-bom"]
    # the second entry is still resolved
    assert report.properties == {"org.slf4j:slf4j-api.version": "2.0.13"}
    assert len(report.outcomes) == 2


def test_own_version_is_not_a_warning(caplog: pytest.LogCaptureFixture):
    caplog.set_level(logging.DEBUG, logger=_LOGGER)
    report = sniff_dependency_versions(
        [],
        [RequestedDependency(group_id="com.acme", artifact_id="lib", version="1.0")],
    )
    assert report.warnings == []
    assert report.properties == {}
    assert _messages(caplog, logging.WARNING) == []
    assert report.outcomes[0].kind == "unmanaged_has_version"


def test_fail_on_unmanaged_raises_after_whole_batch(caplog: pytest.LogCaptureFixture):
    caplog.set_level(logging.DEBUG, logger=_LOGGER)
    props: dict[str, str] = {}
    with pytest.raises(UnmanagedDependencyError) as excinfo:
        sniff_dependency_versions(
            MANAGED,
            [
                RequestedDependency(group_id="a", artifact_id="first"),
                RequestedDependency(group_id="org.slf4j", artifact_id="slf4j-api"),
                RequestedDependency(group_id="a", artifact_id="second"),
            ],
            properties=props,
            fail_on_unmanaged=True,
        )

    err = excinfo.value
    assert isinstance(err, ValueError)
    assert err.keys == ["a:first", "a:second"]
    assert "a:first, a:second" in str(err)
    assert props == {"org.slf4j:slf4j-api.version": "2.0.13"}
    assert len(err.report.outcomes) == 3
    assert len(_messages(caplog, logging.WARNING)) == 2


def test_fail_on_unmanaged_is_quiet_when_everything_resolves():
    report = sniff_dependency_versions(
        MANAGED,
        [RequestedDependency(group_id="org.slf4j", artifact_id="slf4j-api")],
        fail_on_unmanaged=True,
    )
    assert report.unmanaged_keys == []


def test_apply_outcomes_accepts_custom_logger(caplog: pytest.LogCaptureFixture):
    logger = logging.getLogger("build.module-a")
    caplog.set_level(logging.INFO, logger="build.module-a")
    catalog = build_catalog(MANAGED)
    apply_outcomes(resolve(catalog, [RequestedDependency(group_id="x", artifact_id="y")]), logger=logger)
    assert [r.name for r in caplog.records] == ["build.module-a"]


def test_maven_key_mode_is_used_for_lookup():
    managed = [ManagedEntry(group_id="g", artifact_id="a", classifier="tests", version="3.0")]
    report = sniff_dependency_versions(
        managed,
        [
            RequestedDependency(group_id="g", artifact_id="a", classifier="tests"),
            RequestedDependency(group_id="g", artifact_id="a"),
        ],
        key_mode="maven",
    )
    assert report.properties == {"g:a.version": "3.0"}
    assert report.unmanaged_keys == ["g:a:jar"]
