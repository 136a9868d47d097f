"""Friction state machine tests — escalation, recovery, deferral, context."""

from intake_engine.friction import (
    friction_context,
    is_sensitive,
    record_engagement,
    record_skip,
)
from intake_engine.models.friction import (
    FrictionState,
    FrictionStrategy,
    SkipReasonCode,
)

PAY = "financial_reality.base_compensation.amount_or_range"
SCHEDULE = "time_and_life.schedule_pattern.type"
SPACE = "environment.physical_space.type"
TEAM = "humans_and_culture.team_composition.team_size"


def _skips(fields, tables, state=None, reason=None):
    state = state or FrictionState()
    for turn, field in enumerate(fields, start=1):
        state = record_skip(state, field=field, turn_number=turn, reason=reason, tables=tables)
    return state


class TestIsSensitive:
    def test_prefixes(self, tables):
        assert is_sensitive(PAY, tables)
        assert is_sensitive("financial_reality.equity.offered", tables)
        assert is_sensitive("stability_signals.company_health.funding_status", tables)
        assert is_sensitive("humans_and_culture.turnover_context.why_people_leave", tables)

    def test_not_sensitive(self, tables):
        assert not is_sensitive(SCHEDULE, tables)
        assert not is_sensitive("stability_signals.company_health.company_age", tables)
        assert not is_sensitive(None, tables)
        assert not is_sensitive("", tables)

    def test_prefix_must_end_on_segment(self, tables):
        assert not is_sensitive("financial_reality.equity_like_thing", tables)


class TestRecordSkip:
    def test_does_not_mutate_input(self, tables):
        state = FrictionState()
        new = record_skip(state, field=SCHEDULE, turn_number=1, tables=tables)
        assert state.total_skips == 0
        assert state.skipped_fields == []
        assert new.total_skips == 1

    def test_single_skip_stays_standard(self, tables):
        state = _skips([SCHEDULE], tables)
        assert state.current_strategy is FrictionStrategy.STANDARD
        assert state.consecutive_skips == 1
        assert state.recovery_attempts == 0

    def test_second_skip_low_disclosure(self, tables):
        state = _skips([SCHEDULE, SPACE], tables)
        assert state.current_strategy is FrictionStrategy.LOW_DISCLOSURE
        assert state.strategy_changed_at == 2
        assert state.recovery_attempts == 1

    def test_third_skip_education(self, tables):
        state = _skips([SCHEDULE, SPACE, TEAM], tables)
        assert state.current_strategy is FrictionStrategy.EDUCATION
        assert state.consecutive_skips == 3
        assert state.total_skips == 3
        assert state.recovery_attempts == 2

    def test_sensitive_skip_is_low_disclosure_at_once(self, tables):
        state = _skips([PAY], tables)
        assert state.current_strategy is FrictionStrategy.LOW_DISCLOSURE
        assert state.recovery_attempts == 1

    def test_sensitive_overrides_count(self, tables):
        state = _skips([PAY, PAY, PAY], tables)
        assert state.current_strategy is FrictionStrategy.LOW_DISCLOSURE
        # Strategy never changed after the first skip.
        assert state.recovery_attempts == 1
        assert state.strategy_changed_at == 1

    def test_decline_topic_defers_category(self, tables):
        state = _skips([SCHEDULE], tables, reason=SkipReasonCode.DECLINE_TOPIC)
        assert state.current_strategy is FrictionStrategy.DEFER
        assert state.deferred_categories == ["time_and_life.schedule_pattern"]

    def test_decline_same_category_twice_listed_once(self, tables):
        state = _skips(
            [SCHEDULE, "time_and_life.schedule_pattern.days_per_week"],
            tables,
            reason=SkipReasonCode.DECLINE_TOPIC,
        )
        assert state.deferred_categories == ["time_and_life.schedule_pattern"]

    def test_skip_record(self, tables):
        state = record_skip(
            FrictionState(),
            field=SPACE,
            turn_number=4,
            reason="dont_know",
            tables=tables,
        )
        rec = state.skipped_fields[0]
        assert rec.field == SPACE
        assert rec.category == "environment.physical_space"
        assert rec.reason is SkipReasonCode.DONT_KNOW
        assert rec.turn_number == 4
        assert rec.timestamp

    def test_unknown_field_skip(self, tables):
        state = record_skip(FrictionState(), field=None, turn_number=1, tables=tables)
        assert state.skipped_fields[0].category is None
        assert state.skipped_fields[0].reason is SkipReasonCode.UNKNOWN


class TestRecordEngagement:
    def test_resets_consecutive(self, tables):
        state = record_engagement(_skips([SCHEDULE], tables), turn_number=2)
        assert state.consecutive_skips == 0
        assert state.total_skips == 1
        assert state.recovery_successes == 0

    def test_recovery_from_education(self, tables):
        state = _skips([SCHEDULE, SPACE, TEAM], tables)
        state = record_engagement(state, turn_number=4)
        assert state.current_strategy is FrictionStrategy.STANDARD
        assert state.recovery_successes == 1
        assert state.last_recovery_turn == 4
        assert state.strategy_changed_at == 4

    def test_deferred_categories_survive_recovery(self, tables):
        state = _skips([SCHEDULE], tables, reason=SkipReasonCode.DECLINE_TOPIC)
        state = record_engagement(state, turn_number=2)
        assert state.current_strategy is FrictionStrategy.STANDARD
        assert state.deferred_categories == ["time_and_life.schedule_pattern"]


class TestFrictionContext:
    def test_fresh_state(self, tables):
        ctx = friction_context(FrictionState(), tables=tables)
        assert ctx.strategy is FrictionStrategy.STANDARD
        assert ctx.directive == "Ask naturally; one topic at a time."
        assert ctx.recent_skipped_fields == []

    def test_pivot_after_one_skip(self, tables):
        ctx = friction_context(_skips([SCHEDULE], tables), tables=tables)
        assert ctx.strategy is FrictionStrategy.STANDARD
        assert "PIVOT" in ctx.directive

    def test_directives_per_strategy(self, tables):
        assert "Offer RANGES" in friction_context(_skips([PAY], tables), tables=tables).directive
        education = friction_context(_skips([SCHEDULE, SPACE, TEAM], tables), tables=tables)
        assert education.directive.startswith("EXPLAIN VALUE")
        deferred = friction_context(
            _skips([SCHEDULE], tables, reason=SkipReasonCode.DECLINE_TOPIC), tables=tables
        )
        assert deferred.directive == "SKIP this topic entirely"
        assert deferred.deferred_categories == ["time_and_life.schedule_pattern"]

    def test_upcoming_sensitive_in_skipped_category(self, tables):
        state = record_engagement(_skips([PAY], tables), turn_number=2)
        upcoming = "financial_reality.base_compensation.pay_frequency"
        ctx = friction_context(state, upcoming_field=upcoming, tables=tables)
        assert ctx.strategy is FrictionStrategy.LOW_DISCLOSURE
        assert ctx.directive == "Offer RANGES or yes/no"

    def test_upcoming_sensitive_never_skipped(self, tables):
        ctx = friction_context(FrictionState(), upcoming_field=PAY, tables=tables)
        assert ctx.strategy is FrictionStrategy.STANDARD

    def test_recent_skips_capped(self, tables):
        fields = [f"environment.amenities.f{i}" for i in range(7)]
        ctx = friction_context(_skips(fields, tables), tables=tables)
        assert ctx.recent_skipped_fields == fields[-5:]
        assert ctx.total_skips == 7
