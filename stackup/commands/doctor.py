"""stackup CLI - Doctor command"""

import click

from stackup.base import BaseCommand
from stackup.constants import REQUIRED_TOOLS
from stackup.models.results import CheckResult, ResultStatus
from stackup.services.docker_service import DockerService
from stackup.ui_components import checks_table
from stackup.utils import EnvironmentValidator


class DoctorCommand(BaseCommand):
    """System health check and diagnostics."""

    def check_tools(self) -> list[CheckResult]:
        """Check external tools are installed."""
        results = []
        for tool, (required, hint) in REQUIRED_TOOLS.items():
            path = EnvironmentValidator.which(tool)
            if path:
                results.append(CheckResult(tool, ResultStatus.SUCCESS, path))
            else:
                status = ResultStatus.FAILURE if required else ResultStatus.WARNING
                label = "Missing" if required else "Missing (optional)"
                results.append(CheckResult(tool, status, label, hint=hint))
        return results

    def check_docker_daemon(self) -> CheckResult:
        """Check the Docker daemon answers; only a missing CLI fails doctor."""
        name = "Docker daemon"
        if not EnvironmentValidator.which("docker"):
            return CheckResult(name, ResultStatus.WARNING, "Skipped (docker CLI not installed)")
        if DockerService(self.executor).is_available():
            return CheckResult(name, ResultStatus.SUCCESS, "Reachable")
        return CheckResult(
            name,
            ResultStatus.WARNING,
            "Not reachable",
            hint="Start Docker or add your user to the docker group",
        )

    def execute(self) -> None:
        self.show_header(
            title="System Diagnostics",
            subtitle="Checking the tools stackup drives",
        )
        self.init_logger("global", "doctor")

        results = self.check_tools()
        results.append(self.check_docker_daemon())

        for result in results:
            self.logger.log(f"{result.name}: {result.status.value} {result.detail}")

        if self.json_output:
            self.output_json(
                {
                    "checks": [
                        {"name": r.name, "status": r.status.value, "detail": r.detail}
                        for r in results
                    ]
                },
                exit_code=1 if any(r.failed for r in results) else 0,
            )
            return

        self.console.print(checks_table("System Health Report", results))
        self.console.print()

        if any(r.failed for r in results):
            self.print_error("Required tools are missing; see hints above")
            raise SystemExit(1)
        self.print_success("Diagnostics complete! Review results above.")


@click.command()
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
def doctor(json_output):
    """
    Health check & diagnostics

    Checks:
    - docker, openssl (required)
    - curl, ansible-playbook, vagrant, VBoxManage (optional)
    - Docker daemon reachability
    """
    cmd = DoctorCommand(json_output=json_output)
    cmd.run()
