from dotenv import load_dotenv

from application.game import ServiceSettlementGateway
from config import Settings, build_advisor, build_repositories, setup_logging
from interfaces.discord.handlers import create_discord_bot


load_dotenv()


def main() -> None:
    settings = Settings.from_env()
    if not settings.discord_token:
        raise RuntimeError("DISCORD_TOKEN environment variable is not set.")
    setup_logging(settings)

    profile_repo, game_repo = build_repositories(settings)
    gateway = ServiceSettlementGateway(profile_repo, game_repo)

    bot = create_discord_bot(gateway, profile_repo, game_repo, advisor=build_advisor(settings))
    bot.run(settings.discord_token, log_handler=None)


if __name__ == "__main__":
    main()
