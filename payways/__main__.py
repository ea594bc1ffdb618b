"""Run the PayWays server: ``python -m payways`` or ``payways``."""

import os

import uvicorn


def main() -> None:
    uvicorn.run(
        "payways.main:app",
        host=os.environ.get("PAYWAYS_HOST", "127.0.0.1"),
        port=int(os.environ.get("PAYWAYS_PORT", "8000")),
        log_config=None,
    )


if __name__ == "__main__":
    main()
