"""Fixed demo roster loaded into an empty store and on every reset."""

from __future__ import annotations

from lovehub.schemas.entities import Gender, User

INTERESTS = [
    "カフェ巡り", "映画鑑賞", "旅行", "筋トレ", "ゲーム",
    "料理", "読書", "音楽", "アウトドア", "写真",
]

SEED_USERS: list[dict] = [
    {
        "id": "user_1",
        "name": "Kenji",
        "age": 26,
        "gender": Gender.MALE,
        "location": "東京",
        "bio": "都内でエンジニアをしています。休日はカフェで本を読んだりしてます。よろしくお願いします！",
        "interests": ["カフェ巡り", "読書", "技術"],
        "photos": [
            "https://picsum.photos/seed/kenji1/400/600",
            "https://picsum.photos/seed/kenji2/400/600",
        ],
    },
    {
        "id": "user_2",
        "name": "Ayaka",
        "age": 24,
        "gender": Gender.FEMALE,
        "location": "横浜",
        "bio": "旅行と美味しいものを食べるのが大好きです🍰 仲良くしてください♪",
        "interests": ["旅行", "料理", "映画鑑賞"],
        "photos": [
            "https://picsum.photos/seed/ayaka1/400/600",
            "https://picsum.photos/seed/ayaka2/400/600",
        ],
    },
    {
        "id": "user_3",
        "name": "Hiro",
        "age": 28,
        "gender": Gender.MALE,
        "location": "埼玉",
        "bio": "アウトドア派です！キャンプとか一緒に行ける人と出会えたら嬉しいです。",
        "interests": ["アウトドア", "筋トレ", "写真"],
        "photos": ["https://picsum.photos/seed/hiro1/400/600"],
    },
    {
        "id": "user_4",
        "name": "Mio",
        "age": 23,
        "gender": Gender.FEMALE,
        "location": "東京",
        "bio": "看護師してます。最近ジムに通い始めました！",
        "interests": ["筋トレ", "音楽", "ショッピング"],
        "photos": [
            "https://picsum.photos/seed/mio1/400/600",
            "https://picsum.photos/seed/mio2/400/600",
        ],
    },
    {
        "id": "admin_1",
        "name": "Admin User",
        "age": 99,
        "gender": Gender.OTHER,
        "location": "System",
        "bio": "Developer Account",
        "interests": [],
        "photos": ["https://picsum.photos/seed/admin/400/600"],
        "is_admin": True,
    },
]


def seed_users() -> list[User]:
    """Fresh ``User`` objects for the demo roster."""
    return [User(**data) for data in SEED_USERS]
