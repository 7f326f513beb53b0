"""
Platform schema validation tests.

Validates that platform configurations are checked completely:
- Every error is collected (never fail-fast)
- Warnings and info never make a configuration invalid
- Messages name the offending field and give an example
"""
import pytest

from gitlink.core.models import normalise_keys
from gitlink.core.schema import (
    IssueCode,
    IssueSeverity,
    ValidationResult,
    validate_all,
    validate_platform,
)


def _codes(result: ValidationResult, severity: IssueSeverity = IssueSeverity.ERROR):
    return [i.code for i in result.issues if i.severity == severity]


@pytest.mark.core
def test_builtin_platforms_are_valid(builtin_platforms):
    """
    Given: The packaged platforms.yml
    When: Validating every platform
    Then: All are valid with no errors
    """
    results = validate_all(normalise_keys(builtin_platforms["platforms"]))

    assert set(results) == {"github", "gitlab", "codeberg", "gitea", "bitbucket"}
    failures = {pid: r.errors for pid, r in results.items() if not r.valid}
    if failures:
        pytest.fail(f"Built-in platforms failed validation: {failures}")


@pytest.mark.core
def test_complete_config_is_valid_despite_warnings(forgejo_config):
    """
    Given: A complete configuration with an unknown pattern type
    When: Validating it
    Then: valid is True with zero errors and one warning
    """
    forgejo_config["patterns"]["wiki"] = ["%[%[(%w+)%]%]"]

    result = validate_platform("forgejo", normalise_keys(forgejo_config))

    assert result.valid
    assert result.errors == []
    assert _codes(result, IssueSeverity.WARNING) == [IssueCode.UNKNOWN_PATTERN_TYPE]
    assert '"wiki"' in result.warnings[0]


@pytest.mark.core
def test_missing_commit_patterns(forgejo_config):
    """
    Given: A configuration without patterns.commit
    When: Validating it
    Then: valid is False and an error mentions "commit"
    """
    del forgejo_config["patterns"]["commit"]

    result = validate_platform("forgejo", normalise_keys(forgejo_config))

    assert not result.valid
    assert _codes(result) == [IssueCode.MISSING_PATTERN_TYPE]
    assert '"commit"' in result.errors[0]


@pytest.mark.core
def test_errors_are_accumulated():
    """
    Given: A configuration broken in several places
    When: Validating it
    Then: Every problem is reported, in check order
    """
    config = normalise_keys({
        "default-url": "ftp://example.com",
        "patterns": {
            "issue": ["#(%d+)", "#(%d+"],
            "merge-request": "!(%d+)",
            "user": ["@(%w+)"],
        },
        "url-formats": {
            "issue": "{repo}/issues/{number}",
            "merge-request": "/{repo}/pulls/{number}",
            "pull": "/pulls",
            "commit": 7,
        },
    })

    result = validate_platform("broken", config)

    assert _codes(result) == [
        IssueCode.INVALID_BASE_URL,
        IssueCode.INVALID_PATTERN,         # issue[2]
        IssueCode.INVALID_PATTERN,         # merge-request not a list
        IssueCode.MISSING_PATTERN_TYPE,    # commit
        IssueCode.INVALID_PATTERN,         # user not a string
        IssueCode.INVALID_URL_FORMAT,      # issue: no leading slash
        IssueCode.INVALID_URL_FORMAT,      # pull: no placeholder
        IssueCode.INVALID_URL_FORMAT,      # commit: not a string
        IssueCode.MISSING_URL_FORMAT,      # user
    ]
    assert "Invalid pattern in issue[2]: unfinished capture" in result.errors[1]
    assert "forward slash" in result.errors[5]
    assert "placeholder" in result.errors[6]
    assert '"/{username}"' in result.errors[8]


@pytest.mark.core
@pytest.mark.parametrize("config,code", [
    ({}, IssueCode.MISSING_REQUIRED_FIELD),
    ({"default_url": 42}, IssueCode.INVALID_BASE_URL),
    ({"default_url": "github.com"}, IssueCode.INVALID_BASE_URL),
])
def test_base_url_checks(config, code):
    """
    Given: A missing or malformed default-url
    When: Validating
    Then: The first error has the matching code
    """
    result = validate_platform("x", config)

    assert result.issues[0].code == code
    assert "default-url" in result.errors[0]


@pytest.mark.core
def test_missing_sections_are_reported():
    """
    Given: A configuration with only a base URL
    When: Validating it
    Then: Both the patterns and url-formats sections are reported missing
    """
    result = validate_platform("bare", {"default_url": "https://example.com"})

    assert _codes(result) == [IssueCode.MISSING_REQUIRED_FIELD, IssueCode.MISSING_REQUIRED_FIELD]
    assert '"patterns"' in result.errors[0]
    assert '"url-formats"' in result.errors[1]


@pytest.mark.core
def test_empty_pattern_list_is_a_warning(forgejo_config):
    """
    Given: An empty merge-request pattern list
    When: Validating
    Then: It is a warning and the configuration stays valid
    """
    forgejo_config["patterns"]["merge-request"] = []

    result = validate_platform("forgejo", normalise_keys(forgejo_config))

    assert result.valid
    assert _codes(result, IssueSeverity.WARNING) == [IssueCode.EMPTY_PATTERN_LIST]


@pytest.mark.core
@pytest.mark.parametrize("platform_id,config", [
    ("", {"default_url": "https://example.com"}),
    (None, {}),
    ("x", ["not", "a", "mapping"]),
])
def test_invalid_platform_stops_early(platform_id, config):
    """
    Given: A bad platform id or a non-mapping configuration
    When: Validating
    Then: Exactly one INVALID_PLATFORM error is reported
    """
    result = validate_platform(platform_id, config)

    assert _codes(result) == [IssueCode.INVALID_PLATFORM]


@pytest.mark.core
def test_keywords_enable_multi_word(forgejo_config):
    """
    Given: Valid keywords for issue and pull
    When: Validating
    Then: An info message records multi-word references
    """
    forgejo_config["keywords"] = {"issue": "issue", "pull": "pull request"}

    result = validate_platform("forgejo", normalise_keys(forgejo_config))

    assert result.valid
    assert _codes(result, IssueSeverity.INFO) == [IssueCode.MULTI_WORD_ENABLED]
    assert "issue, pull" in result.info[0]


@pytest.mark.core
@pytest.mark.parametrize("keywords", [
    {"commit": "commit"},
    {"issue": "issue  #"},
    {"pull": ""},
    ["issue"],
])
def test_invalid_keywords(forgejo_config, keywords):
    """
    Given: Keywords for an unsupported kind, malformed phrases or a list
    When: Validating
    Then: An INVALID_KEYWORD error is reported and no info is added
    """
    forgejo_config["keywords"] = keywords

    result = validate_platform("forgejo", normalise_keys(forgejo_config))

    assert IssueCode.INVALID_KEYWORD in _codes(result)
    assert result.info == []


@pytest.mark.core
def test_non_string_display_name_is_a_warning(forgejo_config):
    """
    Given: A numeric display-name
    When: Validating
    Then: A warning is reported and the configuration stays valid
    """
    forgejo_config["display-name"] = 3

    result = validate_platform("forgejo", normalise_keys(forgejo_config))

    assert result.valid
    assert _codes(result, IssueSeverity.WARNING) == [IssueCode.INVALID_DISPLAY_NAME]


@pytest.mark.core
def test_validate_all_rejects_non_mapping():
    """
    Given: A platforms value that is a list
    When: Validating all platforms
    Then: A single __global__ failure is returned
    """
    results = validate_all(["github"])

    assert list(results) == ["__global__"]
    assert not results["__global__"].valid


@pytest.mark.core
def test_report_format_and_summary():
    """
    Given: A result with one error and one warning
    When: Rendering the report and summary
    Then: Both are numbered and counted
    """
    result = ValidationResult(platform_id="demo")
    result.add_error(IssueCode.MISSING_URL_FORMAT, "Missing required URL format: \"user\"")
    result.add_warning(IssueCode.UNKNOWN_URL_FORMAT, "Unknown URL format type: \"wiki\"")

    report = result.format()

    assert report.startswith("Validation failed with 1 error(s):")
    assert '  [Error 1] Missing required URL format: "user"' in report
    assert "1 warning(s):" in report
    assert result.summary() == "Status: FAILED | Errors: 1 | Warnings: 1"
    assert result.to_dict()["valid"] is False
