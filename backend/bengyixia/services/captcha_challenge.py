import random
from dataclasses import dataclass

OPERATORS = ("+", "-")
OPERAND_MIN = 1
OPERAND_MAX = 20


@dataclass(frozen=True)
class ArithmeticChallenge:
    left: int
    operator: str
    right: int
    answer: int

    @property
    def expression(self) -> str:
        return f"{self.left} {self.operator} {self.right} = ?"


def generate_challenge(
    rng: random.Random, low: int = OPERAND_MIN, high: int = OPERAND_MAX
) -> ArithmeticChallenge:
    """Generate a random addition or subtraction problem with a non-negative answer."""
    a = rng.randint(low, high)
    b = rng.randint(low, high)
    operator = rng.choice(OPERATORS)

    if operator == "+":
        return ArithmeticChallenge(left=a, operator=operator, right=b, answer=a + b)

    # Larger operand first so the answer is never negative
    minuend, subtrahend = max(a, b), min(a, b)
    return ArithmeticChallenge(
        left=minuend,
        operator=operator,
        right=subtrahend,
        answer=minuend - subtrahend,
    )
