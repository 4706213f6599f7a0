# Run with: python -m ledger_bank  OR uvicorn ledger_bank.app:app --reload --port 5001
import os

import uvicorn

from .app import app


def main() -> None:
    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "5001")), log_level="info")


if __name__ == "__main__":
    main()
