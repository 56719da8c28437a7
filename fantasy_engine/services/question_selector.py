"""
Question Selection & Rotation Engine

Picks the questions of a session from the question pool:
- only the requested game type (and, with an event filter, that event's
  questions plus evergreen ones)
- nothing the user saw in their recent sessions (cool-down)
- a difficulty mix close to the target (40% easy, 40% medium, 20% hard)

When the pool is too small the constraints are relaxed in order
(difficulty mix, then cool-down, then count). Selection never fails by
default; it returns fewer questions instead.

Sampling is weighted and without replacement. The generator is seeded, so
the same pool, history and seed always give the same session.
"""

import random
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from fantasy_engine.core.errors import InsufficientPoolError
from fantasy_engine.models.game import Difficulty
from fantasy_engine.models.question import FantasyQuestion

DEFAULT_MIX = {
    Difficulty.EASY.value: 0.4,
    Difficulty.MEDIUM.value: 0.4,
    Difficulty.HARD.value: 0.2,
}
DIFFICULTY_ORDER = {
    Difficulty.EASY.value: 0,
    Difficulty.MEDIUM.value: 1,
    Difficulty.HARD.value: 2,
}

RELAXED_MIX = "difficulty_mix"
RELAXED_COOLDOWN = "cooldown"
RELAXED_COUNT = "count"


@dataclass
class SelectionResult:
    questions: list[FantasyQuestion]
    requested: int
    relaxations: list[str] = field(default_factory=list)

    @property
    def question_ids(self) -> list[str]:
        return [q.id for q in self.questions]

    @property
    def shortfall(self) -> int:
        return max(0, self.requested - len(self.questions))

    @property
    def is_complete(self) -> bool:
        return self.shortfall == 0


class QuestionSelector:
    def __init__(
        self,
        mix: Optional[dict[str, float]] = None,
        event_weight: float = 2.0
    ):
        self.mix = dict(mix or DEFAULT_MIX)
        # Event questions are favoured over evergreen ones when an event is chosen
        self.event_weight = event_weight

    def quotas(self, count: int) -> dict[str, int]:
        """
        Split `count` across difficulties with the largest remainder method.

        10 -> 4/4/2, 3 -> 1/1/1, 5 -> 2/2/1
        """
        total_weight = sum(self.mix.values()) or 1.0
        raw = {d: count * self.mix.get(d, 0.0) / total_weight for d in DIFFICULTY_ORDER}
        quotas = {d: int(v) for d, v in raw.items()}

        remainder = count - sum(quotas.values())
        by_fraction = sorted(
            DIFFICULTY_ORDER,
            key=lambda d: (-(raw[d] - quotas[d]), DIFFICULTY_ORDER[d])
        )
        for d in by_fraction[:remainder]:
            quotas[d] += 1
        return quotas

    def _weight(self, question: FantasyQuestion, event_id: Optional[str]) -> float:
        if event_id is not None and question.event_id == event_id:
            return self.event_weight
        return 1.0

    def _sample(
        self,
        candidates: list[FantasyQuestion],
        k: int,
        rng: random.Random,
        event_id: Optional[str]
    ) -> list[FantasyQuestion]:
        """Weighted sampling without replacement (Efraimidis-Spirakis keys)"""
        if k <= 0 or not candidates:
            return []

        keyed = []
        for question in candidates:
            u = rng.random()
            keyed.append((u ** (1.0 / self._weight(question, event_id)), question.id, question))

        keyed.sort(key=lambda item: (-item[0], item[1]))
        return [item[2] for item in keyed[:k]]

    def select(
        self,
        pool: Iterable[FantasyQuestion],
        game_type: str,
        count: int,
        event_id: Optional[str] = None,
        history: Sequence[Sequence[str]] = (),
        seed: Optional[int] = None,
        strict: bool = False
    ) -> SelectionResult:
        """
        Select up to `count` questions.

        Args:
            pool: candidate questions (any order)
            game_type: requested game type
            count: desired number of questions
            event_id: optional event filter
            history: question ids of the user's recent sessions, most recent first
            seed: random seed for reproducible selection
            strict: raise InsufficientPoolError instead of returning fewer
        """
        rng = random.Random(seed)
        if count <= 0:
            return SelectionResult(questions=[], requested=max(count, 0))

        eligible: dict[str, FantasyQuestion] = {}
        for q in pool:
            if q.game_type != game_type or not q.active:
                continue
            if event_id is not None and q.event_id not in (None, event_id):
                continue
            eligible[q.id] = q
        # Stable candidate order regardless of how storage returned the pool
        candidates = [eligible[qid] for qid in sorted(eligible)]

        # question id -> index of the most recent session it was served in
        served_in: dict[str, int] = {}
        for idx, question_ids in enumerate(history):
            for qid in question_ids:
                served_in.setdefault(qid, idx)

        fresh = [q for q in candidates if q.id not in served_in]
        selected: list[FantasyQuestion] = []
        relaxations: list[str] = []

        # 1. Difficulty mix over fresh questions
        quotas = self.quotas(count)
        for difficulty in DIFFICULTY_ORDER:
            tier = [q for q in fresh if q.difficulty == difficulty]
            selected += self._sample(tier, quotas[difficulty], rng, event_id)

        # 2. Relax the mix: any fresh question
        if len(selected) < count:
            chosen = {q.id for q in selected}
            leftovers = [q for q in fresh if q.id not in chosen]
            extra = self._sample(leftovers, count - len(selected), rng, event_id)
            if extra:
                relaxations.append(RELAXED_MIX)
                selected += extra

        # 3. Relax the cool-down: least recently served first
        if len(selected) < count:
            chosen = {q.id for q in selected}
            stale = [q for q in candidates if q.id in served_in and q.id not in chosen]
            stale.sort(key=lambda q: (-served_in[q.id], q.id))
            extra = stale[:count - len(selected)]
            if extra:
                relaxations.append(RELAXED_COOLDOWN)
                selected += extra

        # 4. Relax the count
        if len(selected) < count:
            relaxations.append(RELAXED_COUNT)

        # Easy questions first; sampling order kept within a tier
        selected.sort(key=lambda q: DIFFICULTY_ORDER[q.difficulty])

        result = SelectionResult(questions=selected, requested=count, relaxations=relaxations)
        if strict and not result.is_complete:
            raise InsufficientPoolError(count, result)
        return result
