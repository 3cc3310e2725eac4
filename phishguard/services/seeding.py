"""Seed a starter item pool so a fresh database can run assessments."""
import json
import logging

from phishguard.store.base import TEST_ITEMS, RecordStore

logger = logging.getLogger(__name__)

DEFAULT_ITEMS = [
    {
        "id": "pay-invoice-urgent",
        "title": "Overdue invoice from a new supplier",
        "description": "Email asking to pay an attached invoice today to avoid a late fee.",
        "is_phishing": True,
        "explanation": "Unknown sender domain, urgency and a macro-enabled attachment are classic invoice-fraud cues.",
        "difficulty_level": "beginner",
        "category": "email",
        "indicators": ["sender_domain_mismatch", "urgent_language", "unexpected_attachment"],
    },
    {
        "id": "it-password-expiry",
        "title": "Your password expires in 2 hours",
        "description": "Message from 'IT Helpdesk' with a link to keep your current password.",
        "is_phishing": True,
        "explanation": "IT never asks you to keep a password via a link; the link points to a lookalike domain.",
        "difficulty_level": "beginner",
        "category": "email",
        "indicators": ["lookalike_domain", "credential_request", "urgent_language"],
    },
    {
        "id": "hr-benefits-portal",
        "title": "Open enrollment reminder",
        "description": "HR reminder pointing to the benefits portal bookmarked on the intranet.",
        "is_phishing": False,
        "explanation": "Sent from the internal domain, no credentials requested, link matches the known portal.",
        "difficulty_level": "beginner",
        "category": "email",
        "indicators": [],
    },
    {
        "id": "parcel-sms",
        "title": "Parcel held at depot",
        "description": "SMS asking for a small redelivery fee through a shortened link.",
        "is_phishing": True,
        "explanation": "Shortened link, payment request and a sender that is not the courier's registered short code.",
        "difficulty_level": "intermediate",
        "category": "sms",
        "indicators": ["shortened_link", "payment_request", "unknown_sender"],
    },
    {
        "id": "ceo-gift-cards",
        "title": "Quick favour from the CEO",
        "description": "Display name matches the CEO; asks you to buy gift cards for a client event.",
        "is_phishing": True,
        "explanation": "Display-name spoofing with a free-mail reply-to and an unusual payment method.",
        "difficulty_level": "intermediate",
        "category": "email",
        "indicators": ["display_name_spoofing", "reply_to_mismatch", "unusual_payment_method"],
    },
    {
        "id": "vendor-bank-change",
        "title": "Updated remittance details",
        "description": "Long-standing vendor thread continues with a request to switch bank accounts.",
        "is_phishing": True,
        "explanation": "A hijacked thread from a compromised vendor mailbox; header shows a different return path.",
        "difficulty_level": "advanced",
        "category": "email",
        "indicators": ["thread_hijack", "return_path_mismatch", "bank_detail_change"],
    },
    {
        "id": "sso-login-page",
        "title": "Single sign-on page",
        "description": "Login page screenshot with a valid certificate on the company identity domain.",
        "is_phishing": False,
        "explanation": "The URL is the real identity provider domain and the certificate subject matches.",
        "difficulty_level": "intermediate",
        "category": "web",
        "indicators": [],
    },
    {
        "id": "oauth-consent",
        "title": "Document shared with you",
        "description": "Consent screen asking a 'Docs Viewer' app for mail read and send permissions.",
        "is_phishing": True,
        "explanation": "Consent phishing: the app is unverified and asks for mailbox scopes a viewer never needs.",
        "difficulty_level": "advanced",
        "category": "web",
        "indicators": ["excessive_oauth_scopes", "unverified_publisher"],
    },
    {
        "id": "calendar-invite",
        "title": "Team retro invite",
        "description": "Calendar invite from your manager for the usual Friday retrospective.",
        "is_phishing": False,
        "explanation": "Expected meeting from a known colleague with no links beyond the meeting room.",
        "difficulty_level": "beginner",
        "category": "email",
        "indicators": [],
    },
    {
        "id": "mfa-fatigue",
        "title": "Repeated sign-in approvals",
        "description": "Five push notifications in a minute followed by a call from 'IT' asking you to approve.",
        "is_phishing": True,
        "explanation": "MFA fatigue: approval requests you did not initiate should be denied and reported.",
        "difficulty_level": "advanced",
        "category": "phone",
        "indicators": ["unsolicited_mfa_prompt", "pretext_call"],
    },
]


async def seed_items(store: RecordStore) -> int:
    """Insert DEFAULT_ITEMS when the pool is empty. Returns number inserted."""
    existing = await store.select_where(TEST_ITEMS, limit=1)
    if existing:
        return 0
    for item in DEFAULT_ITEMS:
        row = {k: v for k, v in item.items() if k != "indicators"}
        row["image_url"] = None
        row["indicators_json"] = json.dumps(item["indicators"])
        await store.insert(TEST_ITEMS, row)
    logger.info("Seeded %d test items", len(DEFAULT_ITEMS))
    return len(DEFAULT_ITEMS)
