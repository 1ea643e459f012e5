from dotenv import load_dotenv

from application.game import GameController, GameSession, ServiceSettlementGateway
from config import Settings, build_advisor, build_repositories, setup_logging
from infrastructure.client_identity import load_or_create_client_id
from interfaces.terminal.game_loop import run_game_loop


load_dotenv()


def main() -> None:
    settings = Settings.from_env()
    setup_logging(settings)

    profile_repo, game_repo = build_repositories(settings)
    client_id = load_or_create_client_id(settings.client_id_path)

    game = GameController(
        GameSession(client_id),
        ServiceSettlementGateway(profile_repo, game_repo),
        advisor=build_advisor(settings),
    )
    run_game_loop(game)


if __name__ == "__main__":
    main()
