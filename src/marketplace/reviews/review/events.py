"""Domain events for the Review aggregate.

Notification collaborators (moderation alerts, author emails) subscribe to
these; the review rules themselves never depend on them.
"""

from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text

from marketplace.domain import marketplace


@marketplace.event(part_of="Review")
class ReviewSubmitted:
    """A buyer reviewed a product from one of their delivered orders."""

    __version__ = 1

    review_id = Identifier(required=True)
    product_id = Identifier(required=True)
    user_id = Identifier(required=True)
    order_id = Identifier(required=True)
    rating = Integer(required=True)
    title = String(required=True, max_length=100)
    image_count = Integer(default=0)
    submitted_at = DateTime(required=True)


@marketplace.event(part_of="Review")
class ReviewEdited:
    __version__ = 1

    review_id = Identifier(required=True)
    title = String(max_length=100)
    content = Text()
    rating = Integer()
    edited_at = DateTime(required=True)


@marketplace.event(part_of="Review")
class ReviewModerated:
    """A moderator set the review's moderation status."""

    __version__ = 1

    review_id = Identifier(required=True)
    product_id = Identifier(required=True)
    previous_status = String(required=True, max_length=20)
    new_status = String(required=True, max_length=20)
    moderator_id = Identifier(required=True)
    notes = String(max_length=500)
    moderated_at = DateTime(required=True)


@marketplace.event(part_of="Review")
class HelpfulVoteRecorded:
    __version__ = 1

    review_id = Identifier(required=True)
    voter_id = Identifier(required=True)
    is_helpful = Boolean(required=True)
    helpful_count = Integer(required=True)
    not_helpful_count = Integer(required=True)
    voted_at = DateTime(required=True)
