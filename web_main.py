from dotenv import load_dotenv

from config import Settings, build_advisor, build_repositories, setup_logging
from interfaces.web.app import create_app


load_dotenv()


def main() -> None:
    settings = Settings.from_env()
    setup_logging(settings)

    profile_repo, game_repo = build_repositories(settings)
    app = create_app(profile_repo, game_repo, advisor=build_advisor(settings))
    app.run(host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
