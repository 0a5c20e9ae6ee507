import logging
import mimetypes
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests
from PIL import Image, UnidentifiedImageError
from requests import Session

from . import config
from .data_models import (
    BlockedUser,
    Candidate,
    Conversation,
    Election,
    Faq,
    HousingListing,
    LibraryMaterial,
    MarketItem,
    MaterialSummary,
    Message,
    NewsItem,
    Transaction,
    User,
)

logger = logging.getLogger("dormtui.api")


class ApiError(Exception):
    """A backend call that did not produce a usable payload."""

    def __init__(self, message: str, status_code: Optional[int] = None, server_message: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        # the backend's own "message" field, when it sent one
        self.server_message = server_message


class APIInterface:
    def set_token(self, token: Optional[str]) -> None: ...
    # auth / profile
    def login(self, email: str, password: str) -> Dict[str, Any]: ...
    def register(self, fields: Dict[str, Any]) -> Dict[str, Any]: ...
    def get_me(self) -> User: ...
    def get_user_profile(self, user_id: str) -> User: ...
    def get_users(self) -> List[User]: ...
    def search_users(self, query: str) -> List[User]: ...
    def update_profile(self, fields: Dict[str, Any]) -> Dict[str, Any]: ...
    def upload_image(self, path: str) -> str: ...
    def change_password(self, current_password: str, new_password: str) -> bool: ...
    def get_blocked_users(self) -> List[BlockedUser]: ...
    def block_user(self, user_id: str) -> bool: ...
    def unblock_user(self, user_id: str) -> bool: ...
    def delete_account(self) -> bool: ...
    # support
    def get_faqs(self) -> List[Faq]: ...
    def report_bug(self, description: str, attachments: Optional[List[str]] = None) -> Dict[str, Any]: ...
    # elections
    def get_elections(self) -> List[Election]: ...
    def get_election(self, election_id: str) -> Election: ...
    def get_candidate(self, candidate_id: str) -> Candidate: ...
    def cast_vote(self, election_id: str, position_id: str, candidate_id: str) -> Dict[str, Any]: ...
    def get_news(self) -> List[NewsItem]: ...
    def get_news_item(self, news_id: str) -> NewsItem: ...
    # library
    def get_materials(self, search: Optional[str] = None, type: Optional[str] = None,
                      department: Optional[str] = None, level: Optional[str] = None) -> List[LibraryMaterial]: ...
    def get_material(self, material_id: str) -> LibraryMaterial: ...
    def get_summary(self, material_id: str) -> MaterialSummary: ...
    def summarize(self, text: str, length: Optional[str] = None) -> Dict[str, Any]: ...
    # market
    def get_items(self, **filters: Any) -> List[MarketItem]: ...
    # housing
    def get_listings(self, **filters: Any) -> List[HousingListing]: ...
    def get_listing(self, listing_id: str) -> HousingListing: ...
    def request_tour(self, listing_id: str, preferred_date: str, preferred_time: str,
                     message: str = "") -> Dict[str, Any]: ...
    # chat
    def get_conversations(self) -> List[Conversation]: ...
    def get_messages(self, conversation_id: str) -> List[Message]: ...
    def send_message(self, conversation_id: str, content: str) -> Message: ...
    def create_conversation(self, recipient_id: str) -> Conversation: ...
    # wallet
    def get_balance(self) -> Dict[str, Any]: ...
    def get_transactions(self, page: int = 1, limit: int = 20) -> List[Transaction]: ...


class RealAPI(APIInterface):
    """API client for the campus backend.

    Every call returns the JSON body (unwrapped from a ``{"data": ...}``
    envelope when the backend uses one) or raises ApiError.
    """

    def __init__(self, base_url: str, timeout: float = 10.0, token: Optional[str] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session: Session = requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})
        self.token: Optional[str] = None
        if token:
            self.set_token(token)

    # --- helpers ---
    def set_token(self, token: Optional[str]) -> None:
        self.token = token
        if token:
            self.session.headers.update({"Authorization": f"Bearer {token}"})
        else:
            self.session.headers.pop("Authorization", None)

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        params = kwargs.pop("params", None)
        if params:
            params = {k: v for k, v in params.items() if v not in (None, "")}
        try:
            resp = self.session.request(method, self._url(path), params=params, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise ApiError(f"Network error: {e}") from e

        if resp.status_code == 401:
            logger.warning("Unauthorized - please login again")
        if not resp.ok:
            server_message = self._server_message(resp)
            raise ApiError(
                server_message or f"Request failed with status {resp.status_code}",
                status_code=resp.status_code,
                server_message=server_message,
            )

        if not resp.content:
            return None
        try:
            body = resp.json()
        except ValueError as e:
            raise ApiError("Invalid JSON in response", status_code=resp.status_code) from e
        return self._unwrap(body)

    @staticmethod
    def _server_message(resp: requests.Response) -> Optional[str]:
        try:
            body = resp.json()
        except ValueError:
            return None
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return None

    @staticmethod
    def _unwrap(body: Any) -> Any:
        if isinstance(body, dict) and "data" in body and "_id" not in body and "id" not in body:
            return body["data"]
        return body

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self._request("GET", path, params=params)

    def _post(self, path: str, json_payload: Optional[Dict[str, Any]] = None) -> Any:
        return self._request("POST", path, json=json_payload)

    def _put(self, path: str, json_payload: Optional[Dict[str, Any]] = None) -> Any:
        return self._request("PUT", path, json=json_payload)

    @staticmethod
    def _camel_params(filters: Dict[str, Any]) -> Dict[str, Any]:
        # camelCase for the backend: min_price -> minPrice
        params = {}
        for key, value in filters.items():
            head, *rest = key.split("_")
            params[head + "".join(part.title() for part in rest)] = value
        return params

    @staticmethod
    def _as_list(data: Any, key: str) -> List[Dict[str, Any]]:
        if isinstance(data, list):
            return data
        if isinstance(data, dict) and isinstance(data.get(key), list):
            return data[key]
        return []

    # --- auth / profile ---
    def login(self, email: str, password: str) -> Dict[str, Any]:
        return self._post("/auth/login", json_payload={"email": email, "password": password})

    def register(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self._post("/auth/register", json_payload=fields)

    def get_me(self) -> User:
        return User.from_api(self._get("/auth/me"))

    def get_user_profile(self, user_id: str) -> User:
        return User.from_api(self._get(f"/auth/users/{user_id}"))

    def get_users(self) -> List[User]:
        return [User.from_api(u) for u in self._as_list(self._get("/auth/users"), "users")]

    def search_users(self, query: str) -> List[User]:
        data = self._get("/auth/search", params={"query": query})
        return [User.from_api(u) for u in self._as_list(data, "users")]

    def update_profile(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self._put("/auth/profile", json_payload=fields)

    def upload_image(self, path: str) -> str:
        """Upload an image file and return the hosted URL."""
        file_path = Path(path)
        content_type = self._image_content_type(file_path)
        with file_path.open("rb") as fh:
            # multipart: let requests build the boundary header
            data = self._request(
                "POST",
                "/upload",
                files={"image": (file_path.name, fh, content_type)},
                headers={"Content-Type": None},
            )
        return data["url"]

    @staticmethod
    def _image_content_type(file_path: Path) -> str:
        try:
            with Image.open(file_path) as img:
                if img.format:
                    return Image.MIME.get(img.format, f"image/{img.format.lower()}")
        except (UnidentifiedImageError, OSError):
            logger.debug("could not identify image %s, guessing from extension", file_path)
        guessed, _ = mimetypes.guess_type(file_path.name)
        return guessed or "image/jpeg"

    def change_password(self, current_password: str, new_password: str) -> bool:
        self._put("/auth/password", json_payload={"currentPassword": current_password, "newPassword": new_password})
        return True

    def get_blocked_users(self) -> List[BlockedUser]:
        data = self._get("/auth/blocked")
        return [BlockedUser.from_api(b) for b in self._as_list(data, "blockedUsers")]

    def block_user(self, user_id: str) -> bool:
        self._post(f"/auth/users/{user_id}/block")
        return True

    def unblock_user(self, user_id: str) -> bool:
        self._post(f"/auth/users/{user_id}/unblock")
        return True

    def delete_account(self) -> bool:
        self._request("DELETE", "/auth/me")
        return True

    # --- support ---
    def get_faqs(self) -> List[Faq]:
        return [Faq.from_api(f) for f in self._as_list(self._get("/support/faqs"), "faqs")]

    def report_bug(self, description: str, attachments: Optional[List[str]] = None) -> Dict[str, Any]:
        return self._post("/bugs", json_payload={"description": description, "attachments": attachments or []})

    # --- elections ---
    def get_elections(self) -> List[Election]:
        return [Election.from_api(e) for e in self._as_list(self._get("/elections"), "elections")]

    def get_election(self, election_id: str) -> Election:
        return Election.from_api(self._get(f"/elections/{election_id}"))

    def get_candidate(self, candidate_id: str) -> Candidate:
        return Candidate.from_api(self._get(f"/elections/candidates/{candidate_id}"))

    def cast_vote(self, election_id: str, position_id: str, candidate_id: str) -> Dict[str, Any]:
        return self._post(
            f"/elections/{election_id}/vote",
            json_payload={"positionId": position_id, "candidateId": candidate_id},
        )

    def get_news(self) -> List[NewsItem]:
        return [NewsItem.from_api(n) for n in self._as_list(self._get("/elections/news"), "news")]

    def get_news_item(self, news_id: str) -> NewsItem:
        return NewsItem.from_api(self._get(f"/elections/news/{news_id}"))

    # --- library ---
    def get_materials(self, search: Optional[str] = None, type: Optional[str] = None,
                      department: Optional[str] = None, level: Optional[str] = None) -> List[LibraryMaterial]:
        data = self._get(
            "/library/materials",
            params={"search": search, "type": type, "department": department, "level": level},
        )
        return [LibraryMaterial.from_api(m) for m in self._as_list(data, "materials")]

    def get_material(self, material_id: str) -> LibraryMaterial:
        return LibraryMaterial.from_api(self._get(f"/library/materials/{material_id}"))

    def get_summary(self, material_id: str) -> MaterialSummary:
        data = self._get(f"/library/materials/{material_id}/summary") or {}
        return MaterialSummary(
            material=LibraryMaterial.from_api(data.get("material") or {}),
            points=list(data.get("summaryPoints") or []),
        )

    def summarize(self, text: str, length: Optional[str] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"text": text}
        if length:
            payload["length"] = length
        return self._post("/library/summarize", json_payload=payload)

    # --- market ---
    def get_items(self, **filters: Any) -> List[MarketItem]:
        data = self._get("/market/items", params=self._camel_params(filters))
        return [MarketItem.from_api(i) for i in self._as_list(data, "items")]

    # --- housing ---
    def get_listings(self, **filters: Any) -> List[HousingListing]:
        data = self._get("/housing/listings", params=self._camel_params(filters))
        return [HousingListing.from_api(h) for h in self._as_list(data, "listings")]

    def get_listing(self, listing_id: str) -> HousingListing:
        return HousingListing.from_api(self._get(f"/housing/listings/{listing_id}"))

    def request_tour(self, listing_id: str, preferred_date: str, preferred_time: str,
                     message: str = "") -> Dict[str, Any]:
        return self._post(
            f"/housing/listings/{listing_id}/tour",
            json_payload={"preferredDate": preferred_date, "preferredTime": preferred_time, "message": message},
        )

    # --- chat ---
    def get_conversations(self) -> List[Conversation]:
        return [Conversation.from_api(c) for c in self._as_list(self._get("/chat/conversations"), "conversations")]

    def get_messages(self, conversation_id: str) -> List[Message]:
        data = self._get(f"/chat/conversations/{conversation_id}/messages")
        return [Message.from_api(m) for m in self._as_list(data, "messages")]

    def send_message(self, conversation_id: str, content: str) -> Message:
        data = self._post(f"/chat/conversations/{conversation_id}/messages", json_payload={"content": content})
        return Message.from_api(data)

    def create_conversation(self, recipient_id: str) -> Conversation:
        data = self._post("/chat/conversations", json_payload={"recipientId": recipient_id})
        return Conversation.from_api(data)

    # --- wallet ---
    def get_balance(self) -> Dict[str, Any]:
        return self._get("/wallet/balance")

    def get_transactions(self, page: int = 1, limit: int = 20) -> List[Transaction]:
        data = self._get("/wallet/transactions", params={"page": page, "limit": limit})
        return [Transaction.from_api(t) for t in self._as_list(data, "transactions")]


def create_api(token: Optional[str] = None) -> RealAPI:
    """Build the client from the environment (DORM_API_URL, DORM_API_TIMEOUT)."""
    return RealAPI(base_url=config.API_URL, timeout=config.API_TIMEOUT, token=token)
