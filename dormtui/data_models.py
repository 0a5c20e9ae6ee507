"""
Data models for the dormtui client.
These are client-side projections of the backend's resources; the backend
owns them, the client only reads them and patches a few profile fields.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple


def _id(d: Dict[str, Any]) -> str:
    return str(d.get("_id") or d.get("id") or "")


def parse_timestamp(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def _name_of(value: Any) -> str:
    """Populated references come back as objects, bare ones as ids."""
    if isinstance(value, dict):
        return value.get("name") or value.get("title") or ""
    return ""


def _label(value: Any) -> str:
    if isinstance(value, dict):
        return _name_of(value)
    return str(value) if value else ""


def _ref_id(value: Any) -> str:
    if isinstance(value, dict):
        return _id(value)
    return str(value) if value else ""


def _dict_id(value: Any) -> str:
    return _id(value) if isinstance(value, dict) else ""


ACTIVE_STATUSES = ("active", "Open")

@dataclass
class User:
    """The signed-in user or another member of the campus."""
    id: str
    name: str
    email: str = ""
    university: str = ""
    avatar: str = ""
    bio: str = ""
    wallet_balance: float = 0
    escrow_balance: float = 0
    notification_settings: Dict[str, bool] = field(default_factory=dict)
    privacy_settings: Dict[str, bool] = field(default_factory=dict)
    blocked_users: List[str] = field(default_factory=list)
    followers: int = 0
    following: int = 0

    @classmethod
    def from_api(cls, d: Dict[str, Any]) -> "User":
        followers = d.get("followers") or 0
        following = d.get("following") or 0
        return cls(
            id=_id(d),
            name=d.get("name") or "",
            email=d.get("email") or "",
            university=_label(d.get("university")),
            avatar=d.get("avatar") or "",
            bio=d.get("bio") or "",
            wallet_balance=d.get("walletBalance", d.get("wallet_balance")) or 0,
            escrow_balance=d.get("escrowBalance", d.get("escrow_balance")) or 0,
            notification_settings=dict(d.get("notificationSettings") or d.get("notification_settings") or {}),
            privacy_settings=dict(d.get("privacySettings") or d.get("privacy_settings") or {}),
            blocked_users=[
                _id(b) if isinstance(b, dict) else str(b)
                for b in (d.get("blockedUsers") or d.get("blocked_users") or [])
            ],
            followers=len(followers) if isinstance(followers, list) else int(followers),
            following=len(following) if isinstance(following, list) else int(following),
        )


@dataclass
class RelatedUser:
    id: str
    name: str
    avatar: str = ""


@dataclass
class Transaction:
    """A wallet ledger entry. Positive amounts are credits."""
    id: str
    type: str
    amount: float
    status: str = "pending"
    description: str = ""
    reference: str = ""
    created_at: Optional[datetime] = None
    related_user: Optional[RelatedUser] = None

    @classmethod
    def from_api(cls, d: Dict[str, Any]) -> "Transaction":
        related = d.get("relatedUserId") or d.get("related_user")
        related_user = None
        if isinstance(related, dict) and related.get("name"):
            related_user = RelatedUser(
                id=_id(related), name=related["name"], avatar=related.get("avatar") or ""
            )
        return cls(
            id=_id(d),
            type=d.get("type") or "",
            amount=d.get("amount") or 0,
            status=d.get("status") or "pending",
            description=d.get("description") or "",
            reference=d.get("reference") or "",
            created_at=parse_timestamp(d.get("createdAt") or d.get("created_at")),
            related_user=related_user,
        )


@dataclass
class Candidate:
    id: str
    name: str
    manifesto: str = ""
    nickname: str = ""
    avatar: str = ""
    position: str = ""
    election: str = ""
    votes: int = 0
    position_id: str = ""
    election_id: str = ""

    @classmethod
    def from_api(cls, d: Dict[str, Any]) -> "Candidate":
        user = d.get("user") if isinstance(d.get("user"), dict) else {}
        return cls(
            id=_id(d),
            name=d.get("name") or user.get("name") or "",
            manifesto=d.get("manifesto") or "",
            nickname=d.get("nickname") or "",
            avatar=d.get("avatar") or user.get("avatar") or "",
            position=_name_of(d.get("positionId")) or _label(d.get("position")),
            election=_name_of(d.get("electionId")) or _label(d.get("election")),
            votes=int(d.get("votes") or 0),
            position_id=_ref_id(d.get("positionId")) or _dict_id(d.get("position")),
            election_id=_ref_id(d.get("electionId")) or _dict_id(d.get("election")),
        )


@dataclass
class Position:
    id: str
    title: str
    candidates: List[Candidate] = field(default_factory=list)

    @classmethod
    def from_api(cls, d: Dict[str, Any]) -> "Position":
        return cls(
            id=_id(d),
            title=d.get("title") or "",
            candidates=[Candidate.from_api(c) for c in (d.get("candidates") or []) if isinstance(c, dict)],
        )


@dataclass
class Election:
    id: str
    title: str
    status: str
    end_date: Optional[datetime] = None
    description: str = ""
    positions: List[Position] = field(default_factory=list)

    @classmethod
    def from_api(cls, d: Dict[str, Any]) -> "Election":
        return cls(
            id=_id(d),
            title=d.get("title") or "",
            status=d.get("status") or "",
            end_date=parse_timestamp(d.get("endDate") or d.get("end_date")),
            description=d.get("description") or "",
            # unpopulated positions are bare ids; nothing to show for those
            positions=[Position.from_api(p) for p in (d.get("positions") or []) if isinstance(p, dict)],
        )


@dataclass
class NewsItem:
    id: str
    title: str
    content: str = ""
    created_at: Optional[datetime] = None

    @classmethod
    def from_api(cls, d: Dict[str, Any]) -> "NewsItem":
        return cls(
            id=_id(d),
            title=d.get("title") or "",
            content=d.get("content") or "",
            created_at=parse_timestamp(d.get("createdAt") or d.get("created_at")),
        )


@dataclass
class MarketItem:
    id: str
    title: str
    price: float
    category: str = ""
    type: str = "item"  # 'item', 'food', 'service'
    images: List[str] = field(default_factory=list)
    condition: str = ""
    seller: str = ""

    @classmethod
    def from_api(cls, d: Dict[str, Any]) -> "MarketItem":
        return cls(
            id=_id(d),
            title=d.get("title") or "",
            price=d.get("price") or 0,
            category=d.get("category") or "",
            type=d.get("type") or "item",
            images=list(d.get("images") or []),
            condition=d.get("condition") or "",
            seller=_name_of(d.get("sellerId")) or d.get("seller") or "",
        )


@dataclass
class HousingListing:
    id: str
    title: str
    price: float
    address: str = ""
    type: str = ""  # 'Self-Con', 'Flat', 'Roommate', 'Hostel'
    description: str = ""
    images: List[str] = field(default_factory=list)
    amenities: List[str] = field(default_factory=list)
    owner: str = ""
    status: str = ""

    @classmethod
    def from_api(cls, d: Dict[str, Any]) -> "HousingListing":
        return cls(
            id=_id(d),
            title=d.get("title") or "",
            price=d.get("price") or 0,
            address=_label(d.get("address")) or d.get("location") or "",
            type=d.get("type") or "",
            description=d.get("description") or "",
            images=list(d.get("images") or []),
            amenities=[str(a) for a in d.get("amenities") or []],
            owner=_name_of(d.get("ownerId")) or _label(d.get("owner")),
            status=d.get("status") or "",
        )


@dataclass
class LibraryMaterial:
    id: str
    title: str
    course_code: str = ""
    file_type: str = "pdf"
    level: str = ""
    department: str = ""
    faculty: str = ""
    rating: float = 0
    downloads: int = 0
    file_size: int = 0

    @property
    def size_label(self) -> str:
        if not self.file_size:
            return "0.5 MB"
        return f"{self.file_size / 1024 / 1024:.1f} MB"

    @classmethod
    def from_api(cls, d: Dict[str, Any]) -> "LibraryMaterial":
        return cls(
            id=_id(d),
            title=d.get("title") or "",
            course_code=d.get("courseCode") or d.get("course_code") or "",
            file_type=d.get("fileType") or d.get("file_type") or "pdf",
            level=str(d.get("level") or ""),
            department=_label(d.get("department")),
            faculty=_label(d.get("faculty")),
            rating=d.get("rating") or 0,
            downloads=int(d.get("downloads") or 0),
            file_size=int(d.get("fileSize") or d.get("file_size") or 0),
        )


@dataclass
class MaterialSummary:
    material: LibraryMaterial
    points: List[str] = field(default_factory=list)


@dataclass
class Message:
    """Represents a chat message."""
    id: str
    sender_id: str
    content: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_api(cls, d: Dict[str, Any]) -> "Message":
        sender = d.get("sender") or d.get("sender_id")
        return cls(
            id=_id(d),
            sender_id=_id(sender) if isinstance(sender, dict) else str(sender or ""),
            content=d.get("content") or "",
            created_at=parse_timestamp(d.get("createdAt") or d.get("created_at")),
        )


@dataclass
class Conversation:
    """Represents a conversation thread."""
    id: str
    participants: List[str] = field(default_factory=list)
    last_message: str = ""
    updated_at: Optional[datetime] = None
    unread: int = 0

    @classmethod
    def from_api(cls, d: Dict[str, Any]) -> "Conversation":
        last = d.get("lastMessage") or d.get("last_message") or ""
        if isinstance(last, dict):
            last = last.get("content") or ""
        return cls(
            id=_id(d),
            participants=[
                p.get("name", "") if isinstance(p, dict) else str(p)
                for p in (d.get("participants") or [])
            ],
            last_message=last,
            updated_at=parse_timestamp(d.get("updatedAt") or d.get("updated_at")),
            unread=int(d.get("unreadCount") or d.get("unread") or 0),
        )


@dataclass
class BlockedUser:
    id: str
    name: str
    avatar: str = ""

    @classmethod
    def from_api(cls, d: Dict[str, Any]) -> "BlockedUser":
        return cls(id=_id(d), name=d.get("name") or "", avatar=d.get("avatar") or "")


@dataclass
class Faq:
    question: str
    answer: str

    @classmethod
    def from_api(cls, d: Dict[str, Any]) -> "Faq":
        return cls(question=d.get("question") or "", answer=d.get("answer") or "")


def split_elections(elections: List[Election]) -> Tuple[List[Election], List[Election]]:
    """Partition elections into (active, upcoming) the way the voting tab lists them."""
    active = [e for e in elections if e.status in ACTIVE_STATUSES]
    upcoming = [e for e in elections if e.status == "upcoming"]
    return active, upcoming


def ballot_ids(candidate: Candidate, election: Optional[Election] = None,
               position: Optional[Position] = None) -> Optional[Tuple[str, str, str]]:
    """(election, position, candidate) ids for a vote, or None when one is unknown.

    Ids the backend populated on the candidate win over the election and
    position it was listed under. A closed or upcoming election takes no votes.
    """
    if election is not None and election.status not in ACTIVE_STATUSES:
        return None
    election_id = candidate.election_id or (election.id if election else "")
    position_id = candidate.position_id or (position.id if position else "")
    if not (election_id and position_id and candidate.id):
        return None
    return election_id, position_id, candidate.id


def chat_candidates(users: List[User], current: Optional[User], query: str = "") -> List[User]:
    """Users the current user can start a chat with: same university, not themselves."""
    found = [
        u for u in users
        if current is None or (u.id != current.id and u.university == current.university)
    ]
    query = query.strip().lower()
    if query:
        found = [u for u in found if query in u.name.lower()]
    return found
