import uvicorn

from lost_loot.core.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run("lost_loot.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
