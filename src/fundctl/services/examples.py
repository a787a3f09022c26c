"""ExamplesService — write starter donor and recipient roster files.

Keys are freshly generated on every call, so the example files are
valid rosters but hold no funds. Never fund a generated example donor.
"""

from __future__ import annotations

from pathlib import Path

import base58
import structlog
from solders.keypair import Keypair

from fundctl.infrastructure.roster import write_example_files
from fundctl.services.result import ServiceResult

logger = structlog.get_logger(__name__)

EXAMPLE_DONORS = 2
EXAMPLE_RECIPIENTS = 3


def _example_donor() -> dict[str, str]:
    keypair = Keypair()
    return {
        "address": str(keypair.pubkey()),
        "privateKey": base58.b58encode(bytes(keypair)).decode("ascii"),
    }


class ExamplesService:
    """Generates example roster files in JSON and CSV form."""

    def write(self, directory: Path, *, force: bool = False) -> ServiceResult:
        op = "examples"
        donors = [_example_donor() for _ in range(EXAMPLE_DONORS)]
        recipients = [str(Keypair().pubkey()) for _ in range(EXAMPLE_RECIPIENTS)]
        try:
            paths = write_example_files(
                directory, donors=donors, recipients=recipients, force=force
            )
        except FileExistsError as exc:
            return ServiceResult.failed(op, "FILE_EXISTS", str(exc))
        except OSError as exc:
            return ServiceResult.failed(op, "WRITE_FAILED", str(exc), directory=str(directory))

        logger.info("examples.written", directory=str(directory), files=len(paths))
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "directory": str(directory),
                "files": [str(p) for p in paths],
                "donors": len(donors),
                "recipients": len(recipients),
            },
            warnings=["Example donor keys are freshly generated and hold no funds"],
        )
