from sqlalchemy.orm import sessionmaker

from bgllotto.db.engine import make_engine
from bgllotto.lottery import mint_tickets, score_entry
from bgllotto.lottery.scoring import TokenHolding
from bgllotto.models import Base
from bgllotto.workflows import seed_round, total_score


def _sample_holdings(levels: list[str], counts: list[int]) -> list[TokenHolding]:
    return [
        TokenHolding(
            index=i,
            count=count,
            id=str(1000 + i),
            is_full=False,
            bracket=i // 4,
            level=level,
        )
        for i, (level, count) in enumerate(zip(levels, counts))
    ]


def main() -> None:
    """Reset the development database and seed a sample round."""
    engine = make_engine()
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine)

    entrants = [
        score_entry("0xA11CE", _sample_holdings(["Common"] * 4 + ["Rare"], [2, 1, 1, 3, 1])),
        score_entry("0xB0B", _sample_holdings(["Special", "Legendary"], [4, 1])),
        score_entry("0xCAFE", _sample_holdings(["Common", "Unique"], [1, 0])),
    ]

    with Session.begin() as session:
        lottery_round = seed_round(
            session,
            last_payment="dev-payment-0001",
            winning_block=123456,
            round_number=1,
            wbgl=100.0,
        )
        print("Seeded round:", lottery_round.to_json())

    total = total_score(entrants)
    minted = mint_tickets(total, lottery_round.winning_block, entrants)
    for index, count in minted.ticket_counts().items():
        print(f"{minted.allocation[index].address}: {count} of {minted.capacity} tickets")


if __name__ == "__main__":
    main()
