"""Orchestration of communication from a transport (socket server, CLI, ...) to the game engine and the match registry (and the reverse direction)."""

import logging
import random
from typing import Optional

from src.ai.engine import ChessAI
from src.api.models import (
    CancelMatchRequest,
    CreateAIMatchRequest,
    CreateMatchRequest,
    GetMatchRequest,
    JoinMatchRequest,
    LobbyEntry,
    MatchResponse,
    MoveRequest,
    ResignRequest,
    StatusResponse,
    normalize_game_code,
)
from src.core.config import Settings
from src.core.exceptions import (
    GameStateError,
    IllegalMoveError,
    NotYourTurnError,
    RepositoryError,
)
from src.core.match import GameCode, Match, PlayerName
from src.core.shared_types import Color, Difficulty, MatchStatus
from src.db.repository import MatchRepository
from src.kalas.clock import TimeSource
from src.kalas.game import Game, GameStatus
from src.kalas.square import algebraic_to_index

logger = logging.getLogger(__name__)


class MatchService:
    """Orchestration of layers for Kalas matches."""

    def __init__(
        self,
        repository: MatchRepository,
        settings: Optional[Settings] = None,
        rng: Optional[random.Random] = None,
        now_ms: Optional[TimeSource] = None,
    ) -> None:
        self.repo = repository
        self.settings = settings or Settings()
        self.rng = rng or random.Random()
        self.now_ms = now_ms

    # -- Lobby ---
    def create_match(self, request: CreateMatchRequest) -> MatchResponse:
        """First player opens a match and waits for an opponent."""
        game = self._new_game(request.time_control)
        match = Match(
            game_id=self._new_game_code(),
            game=game,
            creator=request.player_name,
        )
        self.repo.add_match(match)
        logger.info("Match %s created by %s", match.game_id, match.creator)
        return self._match_response(match)

    def waiting_matches(self) -> list[LobbyEntry]:
        """Matches that can still be joined."""
        return [
            LobbyEntry(
                game_id=match.game_id,
                creator=match.creator,
                time_control=match.game.time_control,
            )
            for match in self.repo.list_matches()
            if match.status == MatchStatus.WAITING
        ]

    def join_match(self, request: JoinMatchRequest) -> MatchResponse:
        """Second player joins. Colors are drawn at random and the clock starts."""
        match = self._fetch_match(request.game_id)
        if match.status != MatchStatus.WAITING:
            raise GameStateError(f"Match {match.game_id} is not open for joining.")
        if request.player_name == match.creator:
            raise GameStateError("You cannot join your own match.")

        creator_color = Color.WHITE if self.rng.random() < 0.5 else Color.BLACK
        match.players = {
            creator_color: match.creator,
            creator_color.opponent: request.player_name,
        }
        match.status = MatchStatus.PLAYING
        match.game.start_timer()
        self.repo.update_match(match)

        logger.info(
            "Match %s started: %s (white) vs %s (black)",
            match.game_id,
            match.players[Color.WHITE],
            match.players[Color.BLACK],
        )
        return self._match_response(match)

    def cancel_match(self, request: CancelMatchRequest) -> None:
        """The creator withdraws a match nobody joined yet."""
        match = self._fetch_match(request.game_id)
        if match.creator != request.player_name:
            raise GameStateError("Only the creator can cancel a match.")
        if match.status != MatchStatus.WAITING:
            raise GameStateError("Only waiting matches can be cancelled.")
        self.repo.delete_match(match.game_id)
        logger.info("Match %s cancelled", match.game_id)

    def create_ai_match(self, request: CreateAIMatchRequest) -> MatchResponse:
        """Single player match against the computer. Starts right away."""
        difficulty = request.difficulty or Difficulty(
            self.settings.ai.default_difficulty
        )
        color = request.color or (
            Color.WHITE if self.rng.random() < 0.5 else Color.BLACK
        )

        match = Match(
            game_id=self._new_game_code(),
            game=self._new_game(request.time_control),
            creator=request.player_name,
            players={color: request.player_name},
            status=MatchStatus.PLAYING,
            ai_difficulty=difficulty,
            ai=ChessAI(difficulty, rng=self.rng, settings=self.settings.ai),
        )
        match.game.start_timer()
        self.repo.add_match(match)
        logger.info(
            "AI match %s started: %s plays %s against %s AI",
            match.game_id,
            request.player_name,
            color,
            difficulty,
        )
        return self._match_response(match)

    # -- Playing ---
    def make_move(self, request: MoveRequest) -> StatusResponse:
        """Move attempt by a player. Squares are in algebraic notation (ex. 'e2')."""
        match = self._fetch_playing_match(request.game_id)
        color = self._color_of(match, request.player_name)

        # the player may have lost on time while thinking
        timeout = self._flag_fall(match)
        if timeout is not None:
            return timeout

        if color != match.game.current_turn:
            raise NotYourTurnError("Not your turn")

        result = match.game.make_move(
            algebraic_to_index(request.from_square),
            algebraic_to_index(request.to_square),
        )
        if not result.success:
            raise IllegalMoveError(result.error)

        assert result.game_status is not None
        logger.debug(
            "Match %s: %s played %s-%s",
            match.game_id,
            color,
            request.from_square,
            request.to_square,
        )
        return self._record_status(match, result.game_status)

    def play_ai_move(self, game_id: GameCode) -> StatusResponse:
        """Let the computer play its turn in an AI match."""
        match = self._fetch_playing_match(game_id)
        if match.ai is None:
            raise GameStateError(f"Match {match.game_id} has no computer player.")
        if match.game.current_turn != match.ai_color:
            raise NotYourTurnError("Not the computer's turn")

        timeout = self._flag_fall(match)
        if timeout is not None:
            return timeout

        move = match.ai.find_best_move(
            match.game, time_limit_ms=self.settings.ai.search_time_limit_ms
        )
        if move is None:
            raise GameStateError("The computer has no legal move.")

        result = match.game.make_move(move.from_square, move.to_square)
        if not result.success:
            raise IllegalMoveError(result.error)

        assert result.game_status is not None
        return self._record_status(match, result.game_status)

    def check_timeout(self, game_id: GameCode) -> Optional[StatusResponse]:
        """Polled periodically by the transport. Returns the final status once a flag falls."""
        match = self._fetch_playing_match(game_id)
        return self._flag_fall(match)

    def resign(self, request: ResignRequest) -> StatusResponse:
        match = self._fetch_playing_match(request.game_id)
        color = self._color_of(match, request.player_name)
        status = match.game.resign(color)
        return self._record_status(match, status)

    def get_state(self, request: GetMatchRequest) -> MatchResponse:
        """
        Retrieve current match state.
        ----
        Used in "polling" loop by a client to check when it is the player's turn for instance.
        """
        return self._match_response(self._fetch_match(request.game_id))

    # -- Internal helpers --
    def _new_game(self, time_control: Optional[int]) -> Game:
        game = Game.new_game(
            time_control=self.settings.game.default_time_control
            if time_control is None
            else time_control,
            rng=self.rng,
            now_ms=self.now_ms,
        )
        game.generate_starting_position()
        return game

    def _new_game_code(self) -> GameCode:
        """Short code players can share. Unique among the live matches."""
        length = self.settings.match.game_code_length
        alphabet = self.settings.match.game_code_alphabet
        while True:
            code = "".join(self.rng.choice(alphabet) for _ in range(length))
            if not self.repo.has_code(code):
                return code

    def _fetch_match(self, game_id: GameCode) -> Match:
        """Attempt to find the match in the repository and raise error if it fails."""
        game_id = normalize_game_code(game_id)
        match = self.repo.get_match(game_id)
        if match is None:
            raise RepositoryError(f"Match with {game_id=} not found.")
        return match

    def _fetch_playing_match(self, game_id: GameCode) -> Match:
        match = self._fetch_match(game_id)
        if match.status != MatchStatus.PLAYING:
            raise GameStateError(f"Match {match.game_id} is not in progress.")
        return match

    def _color_of(self, match: Match, player: PlayerName) -> Color:
        color = match.color_of(player)
        if color is None:
            raise NotYourTurnError(f"{player} is not playing in match {match.game_id}.")
        return color

    def _flag_fall(self, match: Match) -> Optional[StatusResponse]:
        status = match.game.check_timeout()
        if status is None:
            return None
        return self._record_status(match, status)

    def _record_status(self, match: Match, status: GameStatus) -> StatusResponse:
        """Persist the match after an action and close it when the game is decided."""
        if status.game_over:
            match.status = MatchStatus.FINISHED
            logger.info("Match %s finished: %s", match.game_id, status.message)
        self.repo.update_match(match)
        return StatusResponse(
            game_id=match.game_id,
            game_over=status.game_over,
            result=status.result,
            winner=status.winner,
            in_check=status.in_check,
            message=status.message,
            state=match.game.get_state(),
        )

    def _match_response(self, match: Match) -> MatchResponse:
        return MatchResponse(
            game_id=match.game_id,
            players=match.players,
            status=match.status,
            ai_difficulty=match.ai_difficulty,
            ai_color=match.ai_color,
            state=match.game.get_state(),
        )
