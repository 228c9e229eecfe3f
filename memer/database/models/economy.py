# memer/database/models/economy.py
from dataclasses import dataclass
from typing import List, Optional

TRANSACTION_TYPES = (
    "earn", "spend", "transfer", "rob", "fine", "freemium", "fish", "mine",
    "vote", "adventure", "crime", "hunt", "dig", "search", "work", "beg",
    "daily", "postmeme", "stream", "scratch", "highlow", "interest", "admin",
)
NOTIFICATION_TYPES = ("trade", "friend", "event", "system", "rob")


@dataclass(frozen=True)
class Transaction:
    id: str
    user: str
    type: str
    amount: int  # magnitude, direction implied by type
    description: str
    timestamp: int
    target_user: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user": self.user,
            "type": self.type,
            "amount": self.amount,
            "target_user": self.target_user,
            "description": self.description,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_row(cls, row: dict) -> "Transaction":
        return cls(
            id=row["id"],
            user=row["username"],
            type=row["type"],
            amount=row["amount"],
            description=row["description"],
            timestamp=row["timestamp"],
            target_user=row.get("target_user"),
        )


@dataclass
class Notification:
    id: str
    user: str
    message: str
    type: str
    timestamp: int
    read: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user": self.user,
            "message": self.message,
            "type": self.type,
            "read": self.read,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_row(cls, row: dict) -> "Notification":
        return cls(
            id=row["id"],
            user=row["username"],
            message=row["message"],
            type=row["type"],
            read=row["read"],
            timestamp=row["timestamp"],
        )


@dataclass(frozen=True)
class TriviaQuestion:
    id: int
    question: str
    options: List[str]
    correct: int

    def public_dict(self) -> dict:
        return {"question_id": self.id, "question": self.question, "options": list(self.options)}
