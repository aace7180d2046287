"""
Start the API server: `python -m clasificados` or the `clasificados` script.
"""
import uvicorn

from clasificados.core.config import get_settings


def main():
    settings = get_settings()
    uvicorn.run(
        "clasificados.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
