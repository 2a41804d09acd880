"""Models for pipeline run outcomes."""

from dataclasses import dataclass


@dataclass(frozen=True, kw_only=True)
class RunOutputs:
    """Outputs surfaced to the caller once a run was started or previewed."""

    run_id: str
    run_name: str
    status: str
    run_url: str | None = None

    def as_outputs(self) -> dict[str, str]:
        """Map to action output names, leaving out the URL when unknown."""
        outputs = {
            "run-id": self.run_id,
            "run-name": self.run_name,
            "status": self.status,
        }
        if self.run_url:
            outputs["run-url"] = self.run_url
        return outputs
