"""Blackjack round engine with state machine."""

import logging
from dataclasses import dataclass, field
from random import Random
from typing import Callable, NoReturn

from transitions import Machine

from table.cards import DEFAULT_RESHUFFLE_THRESHOLD, Card, Shoe
from table.errors import IllegalAction, InsufficientBalance, InvalidBet, RoundError
from table.game.events import EventEmitter, EventType, GameEvent
from table.game.snapshot import DealerSnapshot, HandSnapshot, RoundSnapshot
from table.game.state import Phase
from table.hand import Hand, Outcome, blackjack_payout, settle_hand

logger = logging.getLogger(__name__)

DEALER_STANDS_ON = 17


@dataclass
class Round:
    """State of the round in progress (or the last settled one)."""

    player_hands: list[Hand] = field(default_factory=list)
    dealer_hand: Hand = field(default_factory=Hand)
    active_hand_index: int = 0
    hole_concealed: bool = True
    wagered: int = 0
    paid_out: int = 0

    @property
    def active_hand(self) -> Hand | None:
        """Get the hand the player is acting on."""
        if 0 <= self.active_hand_index < len(self.player_hands):
            return self.player_hands[self.active_hand_index]
        return None


class RoundEngine:
    """
    Single-player blackjack round engine.

    Completely UI-agnostic: callers issue commands, receive ``RoundSnapshot``
    values back and may subscribe to events. Rejected commands raise a
    ``RoundError`` without changing any state.
    """

    # State machine states
    STATES = [p.name.lower() for p in Phase]

    # State machine transitions
    TRANSITIONS = [
        {"trigger": "deal_cards", "source": ["awaiting_bet", "settled"], "dest": "dealing"},
        {"trigger": "begin_player_turn", "source": "dealing", "dest": "player_turn"},
        {"trigger": "settle_naturals", "source": "dealing", "dest": "settled"},
        {"trigger": "begin_dealer_turn", "source": "player_turn", "dest": "dealer_turn"},
        {"trigger": "settle_round", "source": "dealer_turn", "dest": "settled"},
        {"trigger": "clear_table", "source": "*", "dest": "awaiting_bet"},
    ]

    def __init__(
        self,
        num_decks: int = 6,
        reshuffle_threshold: int = DEFAULT_RESHUFFLE_THRESHOLD,
        initial_balance: int = 1000,
        rng: Random | None = None,
        shoe: Shoe | None = None,
        auto_dealer: bool = True,
    ) -> None:
        """
        Initialize a new engine.

        Args:
            num_decks: Number of decks in the shoe
            reshuffle_threshold: Recompose the shoe below this many cards
            initial_balance: Starting balance
            rng: Random number generator for reproducible shuffles
            shoe: Pre-built shoe (overrides num_decks/reshuffle_threshold/rng)
            auto_dealer: Run the dealer to completion as soon as the player is done;
                when False the caller drives it with ``dealer_step``
        """
        if isinstance(initial_balance, bool) or not isinstance(initial_balance, int):
            raise ValueError("initial_balance must be an integer")
        if initial_balance < 0:
            raise ValueError("initial_balance cannot be negative")

        self.shoe = shoe if shoe is not None else Shoe(
            num_decks=num_decks,
            reshuffle_threshold=reshuffle_threshold,
            rng=rng,
        )
        self.balance = initial_balance
        self.initial_balance = initial_balance
        self.auto_dealer = auto_dealer
        self.round: Round | None = None
        self.events = EventEmitter()

        # Initialize state machine
        self.machine = Machine(
            model=self,
            states=self.STATES,
            transitions=self.TRANSITIONS,
            initial="awaiting_bet",
            auto_transitions=False,
            model_attribute="_machine_state",
        )

    @property
    def phase(self) -> Phase:
        """Get current phase as enum."""
        return Phase[self._machine_state.upper()]  # type: ignore

    def subscribe(
        self,
        handler: Callable[[GameEvent], None],
        event_type: EventType | None = None,
    ) -> None:
        """Subscribe to round events."""
        self.events.subscribe(handler, event_type)

    # Commands

    def start_round(self, bet: int) -> RoundSnapshot:
        """
        Stake a bet and deal a new round.

        Deals player, dealer, player, dealer (hole card face down) and settles
        immediately if either side holds a natural.
        """
        if not self.phase.is_terminal:
            self._reject(IllegalAction, "A round is already in progress", "bet")
        if isinstance(bet, bool) or not isinstance(bet, int) or bet <= 0:
            self._reject(InvalidBet, "Bet must be a positive integer", "bet")
        if bet > self.balance:
            self._reject(
                InvalidBet,
                f"Bet of {bet} exceeds available balance of {self.balance}",
                "bet",
            )

        self.balance -= bet
        self.round = Round(player_hands=[Hand(bet=bet)], wagered=bet)
        self.events.emit_new(EventType.BET_PLACED, amount=bet, balance=self.balance)
        logger.info("Round started: bet=%d balance=%d", bet, self.balance)

        self.deal_cards()
        self.events.emit_new(EventType.ROUND_STARTED, bet=bet)

        player_hand = self.round.player_hands[0]
        dealer_hand = self.round.dealer_hand
        self._deal_to_player(0)
        self._deal_to_dealer()
        self._deal_to_player(0)
        self._deal_to_dealer(concealed=True)

        player_bj = player_hand.is_blackjack
        dealer_bj = dealer_hand.is_blackjack
        if player_bj or dealer_bj:
            self._settle_naturals(player_bj, dealer_bj)
        else:
            self.begin_player_turn()

        return self.snapshot()

    def hit(self) -> RoundSnapshot:
        """Draw one card into the active hand."""
        hand = self._require_player_turn("hit")
        index = self.round.active_hand_index  # type: ignore[union-attr]

        self._deal_to_player(index)
        self.events.emit_new(EventType.PLAYER_HIT, hand_index=index, hand_value=hand.value)
        logger.debug("Hand %d hits: %s", index, hand)

        if hand.is_busted:
            hand.finished = True
            self.events.emit_new(EventType.HAND_BUSTED, hand_index=index, hand_value=hand.value)
            self._advance()

        return self.snapshot()

    def stand(self) -> RoundSnapshot:
        """Finish the active hand as it is."""
        hand = self._require_player_turn("stand")
        index = self.round.active_hand_index  # type: ignore[union-attr]

        hand.finished = True
        self.events.emit_new(EventType.PLAYER_STAND, hand_index=index, hand_value=hand.value)
        logger.debug("Hand %d stands on %d", index, hand.value)

        self._advance()
        return self.snapshot()

    def double_down(self) -> RoundSnapshot:
        """Double the stake on a two-card hand, take exactly one card and finish it."""
        hand = self._require_player_turn("double")
        index = self.round.active_hand_index  # type: ignore[union-attr]

        if not hand.can_double:
            self._reject(IllegalAction, "Can only double on a fresh two-card hand", "double")
        if self.balance < hand.bet:
            self._reject(
                InsufficientBalance,
                f"Doubling needs {hand.bet} but balance is {self.balance}",
                "double",
            )

        self.balance -= hand.bet
        self.round.wagered += hand.bet  # type: ignore[union-attr]
        hand.bet *= 2
        hand.doubled = True

        self._deal_to_player(index)
        hand.finished = True
        self.events.emit_new(
            EventType.PLAYER_DOUBLE,
            hand_index=index,
            new_bet=hand.bet,
            hand_value=hand.value,
        )
        logger.debug("Hand %d doubles to %d: %s", index, hand.bet, hand)

        if hand.is_busted:
            self.events.emit_new(EventType.HAND_BUSTED, hand_index=index, hand_value=hand.value)

        self._advance()
        return self.snapshot()

    def split(self) -> RoundSnapshot:
        """Split a two-card pair into two hands at the same stake. Allowed once per round."""
        hand = self._require_player_turn("split")
        assert self.round is not None

        if len(self.round.player_hands) != 1:
            self._reject(IllegalAction, "Hands can only be split once per round", "split")
        if not hand.is_pair:
            self._reject(IllegalAction, "Can only split two cards of the same rank", "split")
        if self.balance < hand.bet:
            self._reject(
                InsufficientBalance,
                f"Splitting needs {hand.bet} but balance is {self.balance}",
                "split",
            )

        self.balance -= hand.bet
        self.round.wagered += hand.bet
        first, second = hand.cards
        self.round.player_hands = [
            Hand(cards=[first], bet=hand.bet),
            Hand(cards=[second], bet=hand.bet),
        ]
        self.round.active_hand_index = 0

        self._deal_to_player(0)
        self._deal_to_player(1)
        self.events.emit_new(
            EventType.PLAYER_SPLIT,
            bet=hand.bet,
            hand1_value=self.round.player_hands[0].value,
            hand2_value=self.round.player_hands[1].value,
        )
        logger.debug("Split into %s", [str(h) for h in self.round.player_hands])

        return self.snapshot()

    def dealer_step(self) -> RoundSnapshot:
        """Perform exactly one dealer action: draw a card, or stand and settle."""
        if self.phase != Phase.DEALER_TURN:
            self._reject(IllegalAction, "It is not the dealer's turn", "dealer_step")
        self._dealer_step()
        return self.snapshot()

    def play_dealer(self) -> RoundSnapshot:
        """Run the dealer's remaining actions and settle the round."""
        if self.phase != Phase.DEALER_TURN:
            self._reject(IllegalAction, "It is not the dealer's turn", "play_dealer")
        self._run_dealer()
        return self.snapshot()

    def reset(self, balance: int | None = None) -> RoundSnapshot:
        """Abandon any round, recompose the shoe and restore the balance."""
        if balance is None:
            balance = self.initial_balance
        if isinstance(balance, bool) or not isinstance(balance, int) or balance < 0:
            raise ValueError("balance must be a non-negative integer")

        self.shoe.reshuffle()
        self.round = None
        self.balance = balance
        self.clear_table()
        self.events.emit_new(EventType.ENGINE_RESET, balance=balance)
        logger.info("Engine reset: balance=%d", balance)
        return self.snapshot()

    # Queries

    def snapshot(self) -> RoundSnapshot:
        """Return an immutable view of the current state."""
        if self.round is None:
            return RoundSnapshot(
                phase=self.phase,
                balance=self.balance,
                active_hand_index=0,
                hands=(),
                dealer=DealerSnapshot(cards=(), concealed=()),
                wagered=0,
                paid_out=0,
                cards_remaining=self.shoe.cards_remaining,
            )

        dealer_cards = tuple(self.round.dealer_hand.cards)
        concealed = tuple(
            self.round.hole_concealed and i == 1 for i in range(len(dealer_cards))
        )
        return RoundSnapshot(
            phase=self.phase,
            balance=self.balance,
            active_hand_index=self.round.active_hand_index,
            hands=tuple(HandSnapshot.of(h) for h in self.round.player_hands),
            dealer=DealerSnapshot(cards=dealer_cards, concealed=concealed),
            wagered=self.round.wagered,
            paid_out=self.round.paid_out,
            cards_remaining=self.shoe.cards_remaining,
        )

    @property
    def can_bet(self) -> bool:
        return self.phase.is_terminal and self.balance > 0

    @property
    def can_hit(self) -> bool:
        """Check if hitting is allowed."""
        return self._active_hand_in_play() is not None

    @property
    def can_stand(self) -> bool:
        """Check if standing is allowed."""
        return self._active_hand_in_play() is not None

    @property
    def can_double(self) -> bool:
        """Check if doubling is allowed."""
        hand = self._active_hand_in_play()
        return hand is not None and hand.can_double and self.balance >= hand.bet

    @property
    def can_split(self) -> bool:
        """Check if splitting is allowed."""
        hand = self._active_hand_in_play()
        return (
            hand is not None
            and len(self.round.player_hands) == 1  # type: ignore[union-attr]
            and hand.is_pair
            and self.balance >= hand.bet
        )

    def legal_actions(self) -> list[str]:
        """Return the names of the commands that would currently be accepted."""
        checks = {
            "bet": self.can_bet,
            "hit": self.can_hit,
            "stand": self.can_stand,
            "double": self.can_double,
            "split": self.can_split,
            "dealer_step": self.phase == Phase.DEALER_TURN,
        }
        return [name for name, allowed in checks.items() if allowed]

    # Internals

    def _reject(self, error: type[RoundError], message: str, action: str) -> NoReturn:
        """Report a rejected command and raise without touching state."""
        logger.warning("Rejected %s (%s): %s", action, error.code, message)
        self.events.emit_new(
            EventType.ACTION_REJECTED,
            action=action,
            error=error.code,
            message=message,
        )
        raise error(message, action=action)

    def _active_hand_in_play(self) -> Hand | None:
        if self.phase != Phase.PLAYER_TURN or self.round is None:
            return None
        hand = self.round.active_hand
        if hand is None or hand.finished:
            return None
        return hand

    def _require_player_turn(self, action: str) -> Hand:
        hand = self._active_hand_in_play()
        if hand is None:
            self._reject(IllegalAction, f"Cannot {action} outside the player's turn", action)
        return hand

    def _draw(self) -> Card:
        """Draw a card, recomposing the shoe first if it has run low."""
        if self.shoe.needs_reshuffle:
            self.shoe.reshuffle()
            logger.info("Reshuffled shoe: %d cards", self.shoe.cards_remaining)
            self.events.emit_new(
                EventType.SHOE_SHUFFLED,
                cards_remaining=self.shoe.cards_remaining,
            )
        return self.shoe.draw()

    def _deal_to_player(self, index: int) -> Card:
        assert self.round is not None
        hand = self.round.player_hands[index]
        card = self._draw()
        hand.add_card(card)
        self.events.emit_new(
            EventType.CARD_DEALT,
            target="player",
            hand_index=index,
            card=str(card),
            concealed=False,
            hand_value=hand.value,
        )
        logger.debug("Dealt %s to hand %d", card, index)
        return card

    def _deal_to_dealer(self, concealed: bool = False) -> Card:
        assert self.round is not None
        hand = self.round.dealer_hand
        card = self._draw()
        hand.add_card(card)
        self.events.emit_new(
            EventType.CARD_DEALT,
            target="dealer",
            hand_index=None,
            card=None if concealed else str(card),
            concealed=concealed,
            hand_value=None if concealed else hand.value,
        )
        logger.debug("Dealt %s to dealer", "hole card" if concealed else card)
        return card

    def _reveal_hole_card(self) -> None:
        assert self.round is not None
        if not self.round.hole_concealed:
            return
        self.round.hole_concealed = False
        dealer = self.round.dealer_hand
        self.events.emit_new(
            EventType.DEALER_REVEALED,
            card=str(dealer.cards[1]),
            hand_value=dealer.value,
        )

    def _settle_naturals(self, player_bj: bool, dealer_bj: bool) -> None:
        """Resolve a round that ends on the initial deal."""
        assert self.round is not None
        hand = self.round.player_hands[0]
        hand.finished = True

        if player_bj:
            self.events.emit_new(EventType.PLAYER_BLACKJACK, hand_index=0)
        if dealer_bj:
            self.events.emit_new(EventType.DEALER_BLACKJACK)

        if player_bj and dealer_bj:
            result = (Outcome.PUSH, hand.bet)
        elif player_bj:
            result = (Outcome.BLACKJACK, blackjack_payout(hand.bet))
        else:
            result = (Outcome.LOSE, 0)

        self._reveal_hole_card()
        self.settle_naturals()
        self._apply_results([result])

    def _advance(self) -> None:
        """Move to the next unfinished hand, or hand over to the dealer."""
        assert self.round is not None
        hands = self.round.player_hands
        current = self.round.active_hand_index

        later = [i for i, h in enumerate(hands) if not h.finished and i > current]
        earlier = [i for i, h in enumerate(hands) if not h.finished and i < current]
        candidates = later or earlier
        if candidates:
            self.round.active_hand_index = candidates[0]
            self.events.emit_new(EventType.ACTIVE_HAND_CHANGED, hand_index=candidates[0])
            return

        self.begin_dealer_turn()
        self._reveal_hole_card()
        if self.auto_dealer:
            self._run_dealer()

    def _run_dealer(self) -> None:
        while self.phase == Phase.DEALER_TURN:
            self._dealer_step()

    def _dealer_step(self) -> None:
        """Dealer draws below 17 and stands on every 17, soft or hard."""
        assert self.round is not None
        dealer = self.round.dealer_hand

        if dealer.value < DEALER_STANDS_ON:
            self._deal_to_dealer()
            self.events.emit_new(EventType.DEALER_HITS, hand_value=dealer.value)
            return

        if dealer.is_busted:
            self.events.emit_new(EventType.DEALER_BUSTS, hand_value=dealer.value)
        else:
            self.events.emit_new(EventType.DEALER_STANDS, hand_value=dealer.value)
        self._settle()

    def _settle(self) -> None:
        """Settle every player hand against the dealer hand."""
        assert self.round is not None
        dealer_cards = self.round.dealer_hand.cards
        results = [settle_hand(hand, dealer_cards) for hand in self.round.player_hands]
        self.settle_round()
        self._apply_results(results)

    def _apply_results(self, results: list[tuple[Outcome, int]]) -> None:
        assert self.round is not None
        for hand, (outcome, payout) in zip(self.round.player_hands, results):
            hand.result = outcome
            self.round.paid_out += payout
        self.balance += self.round.paid_out

        summary = [
            {
                "hand_index": i,
                "result": outcome.value,
                "bet": hand.bet,
                "payout": payout,
                "hand_value": hand.value,
            }
            for i, (hand, (outcome, payout)) in enumerate(zip(self.round.player_hands, results))
        ]
        self.events.emit_new(
            EventType.ROUND_SETTLED,
            results=summary,
            dealer_value=self.round.dealer_hand.value,
            wagered=self.round.wagered,
            paid_out=self.round.paid_out,
            balance=self.balance,
        )
        logger.info(
            "Round settled: %s dealer=%d balance=%d",
            " | ".join(f"Hand {r['hand_index'] + 1}: {r['result']}" for r in summary),
            self.round.dealer_hand.value,
            self.balance,
        )
