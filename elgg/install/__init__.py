from elgg.install.installer import Installer, StepResult
from elgg.install.requirements import Check, RequirementsReport, check_requirements

__all__ = ["Check", "Installer", "RequirementsReport", "StepResult", "check_requirements"]
