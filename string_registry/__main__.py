import uvicorn

from string_registry.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run("string_registry.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
