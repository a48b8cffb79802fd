"""Store access for puzzles, submissions, leaderboards and streaks.

Every method returns plain records from ``wordscramble.types``. Writes that
can race (puzzle per date, submission per actor/word, leaderboard score) are
settled by unique constraints and ``ON CONFLICT`` statements at the store.
"""

import datetime as dt
from typing import Dict, List, Optional, Tuple

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError

from wordscramble import db, types
from wordscramble.models import (
    ALL_TIME_PERIOD_KEY,
    LeaderboardEntry,
    Puzzle,
    PuzzleWord,
    Streak,
    Submission,
)


def _puzzle_record(row: Puzzle) -> types.Puzzle:
    return types.Puzzle(
        id=row.id,
        letters=row.letters,
        date=row.date,
        possible_word_count=row.possible_word_count,
    )


def _entry_record(row) -> types.LeaderboardEntry:
    return types.LeaderboardEntry(
        game_id=row.game_id,
        actor_id=row.actor_id,
        period_type=row.period_type,
        period_key=None if row.period_key == ALL_TIME_PERIOD_KEY else row.period_key,
        score=row.score,
    )


def _stored_period_key(period_key: Optional[str]) -> str:
    return ALL_TIME_PERIOD_KEY if period_key is None else period_key


class ScrambleRepository:
    @property
    def session(self):
        return db.session

    def _insert(self, table):
        dialect = self.session.get_bind().dialect.name
        if dialect == 'postgresql':
            return postgresql.insert(table)
        if dialect == 'sqlite':
            return sqlite.insert(table)
        raise NotImplementedError(f"ON CONFLICT writes are not supported on {dialect}")

    def _greatest(self, *args):
        if self.session.get_bind().dialect.name == 'sqlite':
            # SQLite's multi-argument max() is the scalar GREATEST
            return sa.func.max(*args)
        return sa.func.greatest(*args)

    # ------------------------------------------------------------------
    # Puzzles and words
    # ------------------------------------------------------------------

    def get_puzzle(self, puzzle_id: int) -> Optional[types.Puzzle]:
        row = self.session.get(Puzzle, puzzle_id)
        return _puzzle_record(row) if row else None

    def find_puzzle_by_date(self, date: dt.date) -> Optional[types.Puzzle]:
        row = Puzzle.query.filter_by(date=date).first()
        return _puzzle_record(row) if row else None

    def create_puzzle_with_words(self, date: dt.date, letters: str, words: Dict[str, int]) -> Optional[types.Puzzle]:
        """Insert a puzzle and its full word list in one transaction.

        Returns None when another writer already created the puzzle for
        ``date``; nothing is written in that case.
        """
        puzzle = Puzzle(letters=letters, date=date, possible_word_count=len(words))
        try:
            self.session.add(puzzle)
            self.session.flush()
            self.session.add_all(
                PuzzleWord(puzzle_id=puzzle.id, text=text.lower(), score=score)
                for text, score in sorted(words.items())
            )
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            return None
        return _puzzle_record(puzzle)

    def find_word(self, puzzle_id: int, text: str) -> Optional[types.Word]:
        row = PuzzleWord.query.filter_by(puzzle_id=puzzle_id, text=text.lower()).first()
        if not row:
            return None
        return types.Word(puzzle_id=row.puzzle_id, text=row.text, score=row.score)

    def list_words(self, puzzle_id: int) -> List[types.Word]:
        rows = PuzzleWord.query.filter_by(puzzle_id=puzzle_id).order_by(PuzzleWord.text).all()
        return [types.Word(puzzle_id=r.puzzle_id, text=r.text, score=r.score) for r in rows]

    # ------------------------------------------------------------------
    # Submissions
    # ------------------------------------------------------------------

    def has_submission(self, puzzle_id: int, actor_id: str, text: str) -> bool:
        query = Submission.query.filter_by(puzzle_id=puzzle_id, actor_id=actor_id, text=text.lower())
        return self.session.query(query.exists()).scalar()

    def insert_submission_if_absent(self, puzzle_id: int, actor_id: str, text: str, score: int) -> bool:
        """Returns True when the row was written, False when it already existed."""
        stmt = self._insert(Submission.__table__).values(
            puzzle_id=puzzle_id,
            actor_id=actor_id,
            text=text.lower(),
            score=score,
        ).on_conflict_do_nothing(index_elements=['puzzle_id', 'actor_id', 'text'])
        try:
            result = self.session.execute(stmt)
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            return False
        return result.rowcount == 1

    def list_submissions(self, puzzle_id: int, actor_id: str) -> List[types.Submission]:
        rows = (
            Submission.query.filter_by(puzzle_id=puzzle_id, actor_id=actor_id)
            .order_by(Submission.created_at, Submission.id)
            .all()
        )
        return [
            types.Submission(
                puzzle_id=r.puzzle_id,
                actor_id=r.actor_id,
                text=r.text,
                score=r.score,
                created_at=r.created_at,
            )
            for r in rows
        ]

    def actor_puzzle_totals(self, puzzle_id: int, actor_id: str) -> Tuple[int, int]:
        """(total score, found word count) for one actor on one puzzle."""
        total, count = self.session.execute(
            sa.select(sa.func.coalesce(sa.func.sum(Submission.score), 0), sa.func.count(Submission.id))
            .where(Submission.puzzle_id == puzzle_id, Submission.actor_id == actor_id)
        ).one()
        return int(total), int(count)

    # ------------------------------------------------------------------
    # Leaderboards
    # ------------------------------------------------------------------

    def upsert_max_score(self, game_id: str, actor_id: str, period_type: str, period_key: Optional[str], score: int) -> None:
        """score = max(stored score, score) as one conditional write.

        ``updated_at`` moves only when the stored score goes up.
        """
        table = LeaderboardEntry.__table__
        stmt = self._insert(table).values(
            game_id=game_id,
            actor_id=actor_id,
            period_type=period_type,
            period_key=_stored_period_key(period_key),
            score=score,
            updated_at=dt.datetime.now(dt.timezone.utc),
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=['game_id', 'actor_id', 'period_type', 'period_key'],
            set_={
                'score': self._greatest(table.c.score, stmt.excluded.score),
                'updated_at': sa.case(
                    (stmt.excluded.score > table.c.score, stmt.excluded.updated_at),
                    else_=table.c.updated_at,
                ),
            },
        )
        self.session.execute(stmt)
        self.session.commit()

    def find_entry(self, game_id: str, actor_id: str, period_type: str, period_key: Optional[str]) -> Optional[types.LeaderboardEntry]:
        row = LeaderboardEntry.query.filter_by(
            game_id=game_id,
            actor_id=actor_id,
            period_type=period_type,
            period_key=_stored_period_key(period_key),
        ).first()
        return _entry_record(row) if row else None

    def top_entries(self, game_id: str, period_type: str, period_key: Optional[str], limit: int) -> List[types.LeaderboardEntry]:
        rows = (
            LeaderboardEntry.query.filter_by(
                game_id=game_id,
                period_type=period_type,
                period_key=_stored_period_key(period_key),
            )
            .order_by(LeaderboardEntry.score.desc(), LeaderboardEntry.id)
            .limit(limit)
            .all()
        )
        return [_entry_record(r) for r in rows]

    def count_higher_scores(self, game_id: str, period_type: str, period_key: Optional[str], score: int) -> int:
        return LeaderboardEntry.query.filter(
            LeaderboardEntry.game_id == game_id,
            LeaderboardEntry.period_type == period_type,
            LeaderboardEntry.period_key == _stored_period_key(period_key),
            LeaderboardEntry.score > score,
        ).count()

    # ------------------------------------------------------------------
    # Streaks
    # ------------------------------------------------------------------

    def find_streak(self, game_id: str, actor_id: str) -> Optional[types.Streak]:
        row = Streak.query.filter_by(game_id=game_id, actor_id=actor_id).first()
        if not row:
            return None
        return types.Streak(
            game_id=row.game_id,
            actor_id=row.actor_id,
            current_streak=row.current_streak,
            longest_streak=row.longest_streak,
            last_played_date=row.last_played_date,
        )

    def top_streaks(self, game_id: str, limit: int) -> List[types.Streak]:
        rows = (
            Streak.query.filter_by(game_id=game_id)
            .order_by(Streak.current_streak.desc(), Streak.longest_streak.desc(), Streak.id)
            .limit(limit)
            .all()
        )
        return [
            types.Streak(
                game_id=r.game_id,
                actor_id=r.actor_id,
                current_streak=r.current_streak,
                longest_streak=r.longest_streak,
                last_played_date=r.last_played_date,
            )
            for r in rows
        ]

    def save_streak(self, streak: types.Streak) -> types.Streak:
        row = Streak.query.filter_by(game_id=streak.game_id, actor_id=streak.actor_id).first()
        if row is None:
            row = Streak(game_id=streak.game_id, actor_id=streak.actor_id)
        row.current_streak = streak.current_streak
        row.longest_streak = streak.longest_streak
        row.last_played_date = streak.last_played_date
        try:
            self.session.add(row)
            self.session.commit()
        except IntegrityError:
            # A concurrent first play created the row; the other writer's values stand
            self.session.rollback()
            return self.find_streak(streak.game_id, streak.actor_id)
        return streak

