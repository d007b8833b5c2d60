"""Status and type values stored in the database as plain strings."""


class UserRole:
    PLATFORM_ADMIN = "PLATFORM_ADMIN"
    CLIENT_ADMIN = "CLIENT_ADMIN"
    TEAM_MEMBER = "TEAM_MEMBER"
    ALL = (PLATFORM_ADMIN, CLIENT_ADMIN, TEAM_MEMBER)


class UserStatus:
    PENDING_VERIFICATION = "PENDING_VERIFICATION"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    ACTIVE = "ACTIVE"
    DISABLED = "DISABLED"
    ALL = (PENDING_VERIFICATION, PENDING_APPROVAL, ACTIVE, DISABLED)


class ClientType:
    FULL = "FULL"
    LITE = "LITE"


class CampaignStatus:
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"
    PUBLISHED = "PUBLISHED"
    ALL = (DRAFT, ACTIVE, CLOSED, PUBLISHED)


class ResponseStatus:
    PENDING = "PENDING"
    OPENED = "OPENED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    EXCLUDED = "EXCLUDED"
    ALL = (PENDING, OPENED, IN_PROGRESS, COMPLETED, EXCLUDED)


class NominationStatus:
    UNMATCHED = "UNMATCHED"
    MATCHED = "MATCHED"
    REVIEW_NEEDED = "REVIEW_NEEDED"
    NEW_HCP = "NEW_HCP"
    EXCLUDED = "EXCLUDED"
    ALL = (UNMATCHED, MATCHED, REVIEW_NEEDED, NEW_HCP, EXCLUDED)


class MatchType:
    EXACT = "exact"
    PRIMARY = "primary"
    ALIAS = "alias"
    PARTIAL = "partial"
    ALL = (EXACT, PRIMARY, ALIAS, PARTIAL)


class PaymentStatus:
    PENDING_EXPORT = "PENDING_EXPORT"
    EXPORTED = "EXPORTED"
    EMAIL_SENT = "EMAIL_SENT"
    EMAIL_DELIVERED = "EMAIL_DELIVERED"
    EMAIL_OPENED = "EMAIL_OPENED"
    CLAIMED = "CLAIMED"
    BOUNCED = "BOUNCED"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"
    ALL = (PENDING_EXPORT, EXPORTED, EMAIL_SENT, EMAIL_DELIVERED, EMAIL_OPENED,
           CLAIMED, BOUNCED, REJECTED, EXPIRED)


class OptOutScope:
    CAMPAIGN = "CAMPAIGN"
    GLOBAL = "GLOBAL"


class QuestionType:
    TEXT = "TEXT"
    NUMBER = "NUMBER"
    RATING = "RATING"
    SINGLE_CHOICE = "SINGLE_CHOICE"
    MULTI_CHOICE = "MULTI_CHOICE"
    DROPDOWN = "DROPDOWN"
    MULTI_TEXT = "MULTI_TEXT"
    ALL = (TEXT, NUMBER, RATING, SINGLE_CHOICE, MULTI_CHOICE, DROPDOWN, MULTI_TEXT)
    CHOICE_TYPES = (SINGLE_CHOICE, MULTI_CHOICE, DROPDOWN)


class NominationType:
    ALL = ("NATIONAL_KOL", "RISING_STAR", "REGIONAL_EXPERT", "DIGITAL_INFLUENCER", "CLINICAL_EXPERT")


# Objective segment scores on HcpDiseaseAreaScore, in CSV/report order.
SEGMENTS = [
    ("score_publications", "weight_publications", "Research & Publications"),
    ("score_clinical_trials", "weight_clinical_trials", "Clinical Trials"),
    ("score_trade_pubs", "weight_trade_pubs", "Trade Pubs"),
    ("score_org_leadership", "weight_org_leadership", "Org Leadership"),
    ("score_org_awareness", "weight_org_awareness", "Org Awareness"),
    ("score_conference", "weight_conference", "Conference"),
    ("score_social_media", "weight_social_media", "Social Media"),
    ("score_media_podcasts", "weight_media_podcasts", "Media/Podcasts"),
]

SYSTEM_USER_EMAIL = "system@kol360.internal"

# (code, name) seeded under the Ophthalmology therapeutic area
DISEASE_AREAS = [
    ("RETINA", "Retina"),
    ("DRY_EYE", "Dry Eye"),
    ("GLAUCOMA", "Glaucoma"),
    ("CORNEA", "Cornea"),
]
THERAPEUTIC_AREA = "Ophthalmology"

OPHTHALMOLOGY_SPECIALTIES = ["Ophthalmology", "Cornea", "Glaucoma", "Retina", "Dry Eye"]
