"""
Entrypoint for running a service via ``python -m cep_weather <service>``.

    python -m cep_weather input          # POST /
    python -m cep_weather orchestration  # GET /{cep}

Settings come from CEP_WEATHER_* environment variables.
"""

from __future__ import annotations

import argparse
from collections.abc import Sequence

import uvicorn

from cep_weather.core.config import get_input_settings, get_orchestration_settings
from cep_weather.main import create_input_app, create_orchestration_app


def main(argv: Sequence[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="cep-weather")
    parser.add_argument("service", choices=["input", "orchestration"])
    args = parser.parse_args(argv)

    if args.service == "input":
        settings = get_input_settings()
        app = create_input_app(settings)
    else:
        settings = get_orchestration_settings()
        app = create_orchestration_app(settings)

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_config=None,  # structlog
    )


if __name__ == "__main__":
    main()
