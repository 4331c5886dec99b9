"""
Central configuration and tunable constants.

- Language and report directory can be overridden by CLI args or environment variables.
- Column names of the inventory export are centralized here.
"""

# Rule text ships in two languages; reports default to Japanese.
SUPPORTED_LANGUAGES = ("ja", "en")
DEFAULT_LANGUAGE = "ja"
LANGUAGE_ENV_VAR = "REVIEW_LANG"

DEFAULT_REPORT_DIR = "reports"

# Inventory export columns used for routing and resource id extraction
SERVICE_FIELD = "Service"
NAME_FIELD = "Name"

ISSUES_HEADERS = ["No", "Issue", "Comment", "Recommendation", "Priority", "Resource Link"]
DETAIL_HEADERS = ["ResourceId", "Subscription", "ResourceGroup", "ResourceType", "Resource"]

ISSUES_SHEET = "Issues"
ISSUE_TABLE_ID_PREFIX = "issue-table-"

# Priority at or below which an issue is shown as critical in the console
CRITICAL_PRIORITY = 0
