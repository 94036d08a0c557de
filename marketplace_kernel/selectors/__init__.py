"""Read-only query selectors over the rule store."""

from marketplace_kernel.selectors.base import BaseSelector
from marketplace_kernel.selectors.rule_selector import RuleSelector
