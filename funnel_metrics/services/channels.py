"""
Channel descriptors for the Funnel Metrics engine.

Every channel runs the same generic pipeline; what differs between channels is
data, captured here in one frozen ChannelDescriptor per channel:

- numeric_fields / label_fields: canonical name -> raw record key
- derived_fields: numeric fields computed from other numeric fields
  (CTV impressions = households x impressions per household)
- rates: ordered RateSpec list; the order is the insight evaluation order
- breakdowns: breakdown dimension -> label field
- time_dimensions: hour_of_day/day_of_week -> raw record key
- presence_fields: raw keys whose presence marks a document as this channel's
- dispatch_fields: raw keys that route a query to this channel; a key belongs
  to at most one channel
- recommendations: rate name -> fixed recommendation for a fired improvement

Benchmark and weight values are not stored here; they come from
funnel_metrics.core.benchmarks and are checked against the descriptor when a
pipeline is built.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Optional, Tuple

from funnel_metrics.core.benchmarks import BenchmarkTable
from funnel_metrics.core.errors import ChannelConfigurationError
from funnel_metrics.models.enums import Channel, RateDirection, TimeDimension


# =============================================================================
# Descriptor Types
# =============================================================================


@dataclass(frozen=True)
class RateSpec:
    """
    One derived ratio: numerator / denominator * multiplier.

    unit controls presentation in insight text only:
    "percent" (fraction shown as %), "currency" (USD), "ratio" (plain x.xx).
    """
    name: str
    label: str
    numerator: str
    denominator: str
    direction: RateDirection = RateDirection.HIGHER
    multiplier: float = 1.0
    unit: str = "percent"


@dataclass(frozen=True)
class DerivedField:
    """A numeric field computed from other numeric fields after extraction."""
    name: str
    operands: Tuple[str, ...]
    op: str = "sum"  # sum | product | difference


@dataclass(frozen=True)
class ChannelDescriptor:
    channel: Channel
    numeric_fields: Mapping[str, str]
    label_fields: Mapping[str, str]
    rates: Tuple[RateSpec, ...]
    breakdowns: Mapping[str, str]
    presence_fields: Tuple[str, ...]
    dispatch_fields: Tuple[str, ...]
    recommendations: Mapping[str, str]
    derived_fields: Tuple[DerivedField, ...] = ()
    time_dimensions: Mapping[TimeDimension, str] = field(default_factory=dict)

    @property
    def rate_names(self) -> Tuple[str, ...]:
        return tuple(rate.name for rate in self.rates)

    @property
    def count_names(self) -> Tuple[str, ...]:
        """Every numeric field, raw fields first, then derived fields."""
        return tuple(self.numeric_fields) + tuple(d.name for d in self.derived_fields)

    def rate(self, name: str) -> RateSpec:
        for spec in self.rates:
            if spec.name == name:
                return spec
        raise ChannelConfigurationError(f"Unknown rate {self.channel.value}.{name}")

    def validate(self, table: BenchmarkTable) -> None:
        """
        Check the descriptor against its benchmark table and itself.

        Raises:
            ChannelConfigurationError: If a rate has no benchmark, a weight or
                benchmark names an undefined rate, a rate or breakdown points
                at an undefined field, or the table belongs to another channel.
        """
        name = self.channel.value
        if table.channel is not self.channel:
            raise ChannelConfigurationError(
                f"Benchmark table for {table.channel.value} given to channel {name}"
            )

        counts = set(self.count_names)
        for derived in self.derived_fields:
            missing = [operand for operand in derived.operands if operand not in counts]
            if missing:
                raise ChannelConfigurationError(
                    f"Derived field {name}.{derived.name} uses undefined fields {missing}"
                )

        for spec in self.rates:
            if spec.numerator not in counts or spec.denominator not in counts:
                raise ChannelConfigurationError(
                    f"Rate {name}.{spec.name} uses undefined fields"
                )
            if spec.name not in table.benchmarks:
                raise ChannelConfigurationError(f"No benchmark configured for {name}.{spec.name}")

        rate_names = set(self.rate_names)
        for configured in list(table.benchmarks) + list(table.weights):
            if configured not in rate_names:
                raise ChannelConfigurationError(
                    f"Benchmark table for {name} names undefined rate {configured}"
                )

        for dimension, label in self.breakdowns.items():
            if label not in self.label_fields:
                raise ChannelConfigurationError(
                    f"Breakdown {name}.{dimension} uses undefined label {label}"
                )


# =============================================================================
# Channel Definitions
# =============================================================================


ADS = ChannelDescriptor(
    channel=Channel.ADS,
    numeric_fields={
        "impressions": "Ad impressions",
        "clicks": "Total clicks",
        "spend": "Amount spent (USD)",
        "conversions": "Conversions",
        "reach": "Ad Reach",
        "revenue": "Total revenue",
        "negative_feedback": "Negative feedback from users: Hide all",
    },
    label_fields={
        "ad_id": "Ad ID",
        "ad_name": "Ad name",
        "platform": "Ad Platform",
        "campaign": "Campaign Name",
        "ad_set": "Ad Set Name",
    },
    rates=(
        RateSpec("ctr", "CTR", "clicks", "impressions"),
        RateSpec("cpc", "CPC", "spend", "clicks", RateDirection.LOWER, unit="currency"),
        RateSpec("roas", "ROAS", "revenue", "spend", unit="ratio"),
        RateSpec("conversion_rate", "Conversion rate", "conversions", "clicks"),
        RateSpec("frequency", "Frequency", "impressions", "reach", RateDirection.LOWER, unit="ratio"),
        RateSpec("cpm", "CPM", "spend", "impressions", RateDirection.LOWER, 1000.0, "currency"),
        RateSpec("negative_feedback_rate", "Negative feedback rate", "negative_feedback",
                 "impressions", RateDirection.LOWER),
    ),
    breakdowns={"platform": "platform", "campaign": "campaign", "ad_set": "ad_set"},
    presence_fields=("Ad impressions",),
    dispatch_fields=(
        "Ad impressions", "Total clicks", "Amount spent (USD)", "Ad Reach",
        "Total revenue", "Negative feedback from users: Hide all", "Ad ID",
        "Ad name", "Ad Platform", "Ad Set Name",
    ),
    recommendations={
        "ctr": "Test different creatives and headlines to lift click-through.",
        "cpc": "Refine audience targeting and bid strategy to bring CPC down.",
        "roas": "Shift budget toward the ad sets with the strongest return.",
        "conversion_rate": "Align landing pages with ad messaging to improve conversion.",
        "frequency": "Broaden the audience or cap frequency to limit ad fatigue.",
        "cpm": "Review placements and audience overlap to reduce CPM.",
        "negative_feedback_rate": "Refresh creatives that users are hiding.",
    },
)


CTV = ChannelDescriptor(
    channel=Channel.CTV,
    numeric_fields={
        "households": "Households",
        "impressions_per_household": "Impressons per Household",
        "views": "Views",
        "completed_views": "Completed View",
        "cost_per_view": "Cost Per View",
        "conversions": "Results",
    },
    label_fields={
        "campaign_id": "campaign_id",
        "platform": "platform",
        "campaign": "Campaign Name",
    },
    derived_fields=(
        DerivedField("impressions", ("households", "impressions_per_household"), "product"),
        DerivedField("spend", ("completed_views", "cost_per_view"), "product"),
    ),
    rates=(
        RateSpec("conversion_rate", "Conversion rate", "conversions", "impressions"),
        RateSpec("frequency", "Frequency", "impressions", "households", RateDirection.LOWER, unit="ratio"),
        RateSpec("view_rate", "View rate", "views", "impressions"),
        RateSpec("completion_rate", "Completion rate", "completed_views", "views"),
        RateSpec("cpv", "Cost per completed view", "spend", "completed_views",
                 RateDirection.LOWER, unit="currency"),
        RateSpec("cpm", "CPM", "spend", "impressions", RateDirection.LOWER, 1000.0, "currency"),
    ),
    breakdowns={"platform": "platform", "campaign": "campaign"},
    time_dimensions={TimeDimension.HOUR_OF_DAY: "Hour of day"},
    presence_fields=("Households",),
    dispatch_fields=(
        "Households", "Impressons per Household", "Views", "Completed View",
        "Cost Per View", "Results", "Hour of day",
    ),
    recommendations={
        "conversion_rate": "Add a clearer call to action or QR code to CTV spots.",
        "frequency": "Lower household frequency caps to spread reach.",
        "view_rate": "Test shorter openings that hold attention in the first seconds.",
        "completion_rate": "Shorten spots or move the key message earlier.",
        "cpv": "Negotiate inventory or shift to publishers with cheaper completed views.",
        "cpm": "Rebalance toward lower-cost CTV inventory.",
    },
)


EMAIL = ChannelDescriptor(
    channel=Channel.EMAIL,
    numeric_fields={
        "sent": "Emails Sent",
        "opened": "Opened",
        "clicked": "Clicked",
        "converted": "Converted",
        "bounced": "Bounced",
        "unsubscribed": "Unsubscribed",
        "spam_reports": "Spam Reports",
        "forwards": "Forwards",
    },
    label_fields={
        "campaign": "Campaign Name",
        "subject": "Subject Line",
        "platform": "Email Platform",
    },
    derived_fields=(
        DerivedField("delivered", ("sent", "bounced"), "difference"),
    ),
    rates=(
        RateSpec("click_rate", "Click rate", "clicked", "delivered"),
        RateSpec("conversion_rate", "Conversion rate", "converted", "clicked"),
        RateSpec("open_rate", "Open rate", "opened", "delivered"),
        RateSpec("click_to_open_rate", "Click-to-open rate", "clicked", "opened"),
        RateSpec("bounce_rate", "Bounce rate", "bounced", "sent", RateDirection.LOWER),
        RateSpec("unsubscribe_rate", "Unsubscribe rate", "unsubscribed", "delivered", RateDirection.LOWER),
        RateSpec("spam_rate", "Spam complaint rate", "spam_reports", "delivered", RateDirection.LOWER),
    ),
    breakdowns={"campaign": "campaign", "platform": "platform"},
    time_dimensions={
        TimeDimension.HOUR_OF_DAY: "Send Time",
        TimeDimension.DAY_OF_WEEK: "Send Time",
    },
    presence_fields=("Emails Sent",),
    dispatch_fields=(
        "Emails Sent", "Opened", "Clicked", "Converted", "Bounced",
        "Unsubscribed", "Spam Reports", "Forwards", "Subject Line",
        "Email Platform", "Send Time",
    ),
    recommendations={
        "click_rate": "Make the primary call to action more prominent in the email body.",
        "conversion_rate": "Match landing pages to the email offer to convert more clicks.",
        "open_rate": "A/B test subject lines and send times.",
        "click_to_open_rate": "Tighten email content so openers have a reason to click.",
        "bounce_rate": "Clean the list and verify addresses before sending.",
        "unsubscribe_rate": "Segment the list and reduce send frequency.",
        "spam_rate": "Review consent sources and authenticate the sending domain.",
    },
)


SOCIAL = ChannelDescriptor(
    channel=Channel.SOCIAL,
    numeric_fields={
        "reach": "Reach",
        "impressions": "Social impressions",
        "reactions": "Reactions",
        "comments": "Comments",
        "shares": "Shares",
        "saves": "Saves",
        "link_clicks": "Link Clicks",
        "video_views": "Video Views",
        "video_completions": "Video Completions",
    },
    label_fields={
        "platform": "Social Platform",
        "post_type": "Post Type",
        "post_id": "Post ID",
        "campaign": "Campaign Name",
    },
    derived_fields=(
        DerivedField("engagements", ("reactions", "comments", "shares", "saves")),
    ),
    rates=(
        RateSpec("ctr", "CTR", "link_clicks", "impressions"),
        RateSpec("frequency", "Frequency", "impressions", "reach", RateDirection.LOWER, unit="ratio"),
        RateSpec("engagement_rate", "Engagement rate", "engagements", "impressions"),
        RateSpec("video_completion_rate", "Video completion rate", "video_completions", "video_views"),
        RateSpec("share_rate", "Share rate", "shares", "impressions"),
        RateSpec("comment_rate", "Comment rate", "comments", "impressions"),
    ),
    breakdowns={"platform": "platform", "post_type": "post_type", "campaign": "campaign"},
    time_dimensions={
        TimeDimension.HOUR_OF_DAY: "Publish Time",
        TimeDimension.DAY_OF_WEEK: "Publish Time",
    },
    presence_fields=("Social impressions",),
    dispatch_fields=(
        "Social Platform", "Reach", "Social impressions", "Reactions",
        "Comments", "Shares", "Saves", "Link Clicks", "Video Views",
        "Video Completions", "Post Type", "Post ID", "Publish Time",
    ),
    recommendations={
        "ctr": "Put the link and call to action earlier in the post copy.",
        "frequency": "Widen the audience so the same users see fewer repeats.",
        "engagement_rate": "Post more conversational content and reply to comments.",
        "video_completion_rate": "Cut videos shorter and front-load the hook.",
        "share_rate": "Create more shareable formats such as quotes and infographics.",
        "comment_rate": "Ask direct questions to invite comments.",
    },
)


EVENTS = ChannelDescriptor(
    channel=Channel.EVENTS,
    numeric_fields={
        "capacity": "Capacity",
        "rsvps": "RSVPs",
        "attendees": "Attendees",
        "no_shows": "No Shows",
        "waitlist": "Waitlist",
    },
    label_fields={
        "event_id": "Event ID",
        "event_name": "Event Name",
        "event_type": "Event Type",
        "state": "State",
        "platform": "Platform",
        "organizer": "Organizer",
        "organization": "Event organization ID",
        "is_virtual": "Is Virtual",
    },
    rates=(
        RateSpec("attendance_rate", "Attendance rate", "attendees", "rsvps"),
        RateSpec("no_show_rate", "No-show rate", "no_shows", "rsvps", RateDirection.LOWER),
        RateSpec("fill_rate", "Fill rate", "rsvps", "capacity"),
    ),
    breakdowns={
        "event_type": "event_type",
        "organization": "organization",
        "organizer": "organizer",
        "platform": "platform",
        "state": "state",
        # "true" for virtual events, "false" for in-person
        "is_virtual": "is_virtual",
    },
    time_dimensions={TimeDimension.DAY_OF_WEEK: "Event Date"},
    presence_fields=("RSVPs",),
    dispatch_fields=(
        "Event ID", "Event Name", "Event Type", "Event Date", "Capacity",
        "RSVPs", "Attendees", "No Shows", "Waitlist", "State", "Organizer",
        "Event organization ID", "Is Virtual",
    ),
    recommendations={
        "attendance_rate": "Send reminder texts and emails in the 24 hours before the event.",
        "no_show_rate": "Confirm attendance the day before and release unclaimed seats.",
        "fill_rate": "Promote the event earlier and through more channels.",
    },
)


P2P = ChannelDescriptor(
    channel=Channel.P2P,
    numeric_fields={
        "initial_messages": "p2p_initial_messages",
        "follow_ups": "p2p_follow_ups",
        "responses": "p2p_responses",
        "opt_outs": "p2p_opt_outs",
        "undelivered": "p2p_undelivered",
        "messages_remaining": "p2p_messages_remaining",
        "calls_connected": "dialer_calls_connected",
        "contacts_connected": "dialer_contacts_connected",
        "dropped_calls": "dialer_dropped_call_count",
        "reports_filled": "dialer_report_filled_count",
    },
    label_fields={
        "campaign_id": "campaign_id",
        "campaign": "campaign_name",
        "organization": "organization_id",
    },
    derived_fields=(
        DerivedField("messages_sent", ("initial_messages", "follow_ups")),
    ),
    rates=(
        RateSpec("response_rate", "Response rate", "responses", "initial_messages"),
        RateSpec("opt_out_rate", "Opt-out rate", "opt_outs", "initial_messages", RateDirection.LOWER),
        RateSpec("undelivered_rate", "Undelivered rate", "undelivered", "messages_sent", RateDirection.LOWER),
        RateSpec("connection_rate", "Connection rate", "contacts_connected", "calls_connected"),
        RateSpec("drop_rate", "Dropped call rate", "dropped_calls", "calls_connected", RateDirection.LOWER),
    ),
    breakdowns={"campaign": "campaign", "organization": "organization"},
    time_dimensions={
        TimeDimension.HOUR_OF_DAY: "action_created_at",
        TimeDimension.DAY_OF_WEEK: "action_created_at",
    },
    presence_fields=("p2p_initial_messages",),
    dispatch_fields=(
        "p2p_initial_messages", "p2p_follow_ups", "p2p_responses",
        "p2p_opt_outs", "p2p_undelivered", "p2p_messages_remaining",
        "dialer_calls_connected", "dialer_contacts_connected",
        "dialer_dropped_call_count", "dialer_report_filled_count",
        "campaign_id", "campaign_name", "organization_id", "action_created_at",
    ),
    recommendations={
        "response_rate": "Personalize opening texts and send during evening hours.",
        "opt_out_rate": "Soften the opening script and check list consent.",
        "undelivered_rate": "Scrub invalid and landline numbers before the next send.",
        "connection_rate": "Call when contacts are most likely to answer and refresh phone data.",
        "drop_rate": "Lower the dialer pacing ratio so fewer calls are dropped.",
    },
)


CROSS_CHANNEL = ChannelDescriptor(
    channel=Channel.CROSS_CHANNEL,
    numeric_fields={
        "spend": "Spend",
        "revenue": "Revenue",
        "sessions": "Sessions",
        "engaged_sessions": "Engaged sessions",
        "bounces": "Bounces",
        "transactions": "Transactions",
        "clicks": "Clicks",
        "impressions": "Impressions",
    },
    label_fields={
        "channel_group": "First user primary channel group (Default Channel Group)",
        "campaign": "Campaign",
        "period": "Period",
    },
    rates=(
        RateSpec("ctr", "CTR", "clicks", "impressions"),
        RateSpec("roas", "ROAS", "revenue", "spend", unit="ratio"),
        RateSpec("conversion_rate", "Conversion rate", "transactions", "sessions"),
        RateSpec("engagement_rate", "Engagement rate", "engaged_sessions", "sessions"),
        RateSpec("bounce_rate", "Bounce rate", "bounces", "sessions", RateDirection.LOWER),
        RateSpec("cost_per_acquisition", "Cost per acquisition", "spend", "transactions",
                 RateDirection.LOWER, unit="currency"),
        RateSpec("average_order_value", "Average order value", "revenue", "transactions", unit="currency"),
    ),
    breakdowns={"channel_group": "channel_group", "campaign": "campaign", "period": "period"},
    presence_fields=("Sessions",),
    dispatch_fields=(
        "Spend", "Revenue", "Sessions", "Engaged sessions", "Bounces",
        "Transactions", "Clicks", "Impressions",
        "First user primary channel group (Default Channel Group)", "Campaign", "Period",
    ),
    recommendations={
        "ctr": "Refresh creative in the channels with the weakest click-through.",
        "roas": "Move budget from low-return channel groups to the best performers.",
        "conversion_rate": "Streamline checkout and sign-up flows.",
        "engagement_rate": "Improve landing-page relevance for incoming traffic.",
        "bounce_rate": "Speed up landing pages and match them to the referring message.",
        "cost_per_acquisition": "Cut spend on channels whose acquisition cost exceeds target.",
        "average_order_value": "Introduce bundles or upsells at checkout.",
    },
)


DESCRIPTORS: Dict[Channel, ChannelDescriptor] = {
    descriptor.channel: descriptor
    for descriptor in (ADS, CTV, EMAIL, SOCIAL, EVENTS, P2P, CROSS_CHANNEL)
}


# =============================================================================
# Lookup Helpers
# =============================================================================


def get_descriptor(channel) -> ChannelDescriptor:
    """
    Resolve a Channel (or its string value) to its descriptor.

    Raises:
        ChannelConfigurationError: If the channel is unknown.
    """
    try:
        return DESCRIPTORS[Channel(channel)]
    except (ValueError, KeyError):
        raise ChannelConfigurationError(f"Unknown channel: {channel}") from None


def build_field_map(descriptors: Optional[Iterable[ChannelDescriptor]] = None) -> Dict[str, Channel]:
    """
    Build the static raw-field -> channel map used by dispatch.

    Raises:
        ChannelConfigurationError: If a raw field is claimed by two channels.
    """
    field_map: Dict[str, Channel] = {}
    for descriptor in descriptors if descriptors is not None else DESCRIPTORS.values():
        for raw_key in descriptor.dispatch_fields:
            owner = field_map.get(raw_key)
            if owner is not None and owner is not descriptor.channel:
                raise ChannelConfigurationError(
                    f"Dispatch field '{raw_key}' claimed by both {owner.value} and {descriptor.channel.value}"
                )
            field_map[raw_key] = descriptor.channel
    return field_map
