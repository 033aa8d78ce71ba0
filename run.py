from pickem import create_app, db
from pickem.models import LeagueEntry
from pickem.services.league_service import league_service
from pickem.services.standings_service import standings_service

app = create_app()


@app.shell_context_processor
def make_shell_context():
    return {
        "db": db,
        "LeagueEntry": LeagueEntry,
        "league_service": league_service,
        "standings_service": standings_service,
    }


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=5000, debug=app.config["DEBUG"])
