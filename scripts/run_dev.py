"""Development entry point."""

import os

from app import create_app


def _resolve_port() -> int:
    value = os.getenv("CONVERTLY_PORT") or os.getenv("PORT") or "5001"
    try:
        return int(value)
    except ValueError as exc:
        raise SystemExit(
            f"Invalid port '{value}'. Set CONVERTLY_PORT to a number."
        ) from exc


if __name__ == "__main__":
    app = create_app(os.getenv("CONVERTLY_CONFIG", "DevelopmentConfig"))
    app.run(host="127.0.0.1", port=_resolve_port(), debug=False, use_reloader=False)
