"""Unit tests for the expression evaluator.

Expressions are built directly from node classes; loader tests cover the
JSON form.
"""

import time

import pytest

from cedar_acp.entities import EntityStore
from cedar_acp.exceptions import (
    ArithmeticOverflow,
    AttributeNotFound,
    AuthorizationTimeout,
    ExpressionTooDeep,
    FunctionNotFound,
    TypeMismatch,
    UnexpectedType,
    UnresolvedEntity,
)
from cedar_acp.pdp import Deadline, Evaluator
from cedar_acp.pdp.evaluator import like_matches
from cedar_acp.pdp.expr import (
    And,
    BinaryOp,
    ExtensionCall,
    GetAttr,
    HasAttr,
    If,
    Is,
    Like,
    Literal,
    Neg,
    Not,
    Op,
    Or,
    RecordExpr,
    SetExpr,
    Var,
    VarName,
)
from cedar_acp.values import (
    FALSE,
    LONG_MAX,
    LONG_MIN,
    TRUE,
    EntityRef,
    EntityUID,
    Long,
    Record,
    SetValue,
    String,
)

PRINCIPAL = Var(VarName.PRINCIPAL)
RESOURCE = Var(VarName.RESOURCE)
CONTEXT = Var(VarName.CONTEXT)


def lit_long(value: int) -> Literal:
    return Literal(Long(value))


def lit_str(value: str) -> Literal:
    return Literal(String(value))


def lit_ref(entity_type: str, entity_id: str) -> Literal:
    return Literal(EntityRef(EntityUID(entity_type, entity_id)))


# A subexpression that always raises when evaluated
BOOM = GetAttr(Literal(Record.of()), "missing")


@pytest.fixture
def evaluate(photo_store, make_request):
    """Evaluate an expression for alice viewing vacation.jpg."""

    def _evaluate(expr, context=None, store: EntityStore | None = None):
        request = make_request(context=context)
        return Evaluator(request, store if store is not None else photo_store).evaluate(expr)

    return _evaluate


class TestVariablesAndAttributes:
    """Tests for variables, `.` and `has`."""

    def test_variables_resolve_to_request(self, evaluate):
        assert evaluate(PRINCIPAL) == EntityRef(EntityUID("User", "alice"))
        assert evaluate(CONTEXT, context={"x": Long(1)}) == Record.of({"x": Long(1)})

    def test_entity_attribute(self, evaluate):
        """Given principal.department, returns alice's attribute."""
        assert evaluate(GetAttr(PRINCIPAL, "department")) == String("engineering")

    def test_nested_attribute_through_entity_ref(self, evaluate):
        """Given resource.owner.level, follows the reference to alice."""
        assert evaluate(GetAttr(GetAttr(RESOURCE, "owner"), "level")) == Long(7)

    def test_missing_record_key_raises(self, evaluate):
        """Given context.ip on an empty context, raises AttributeNotFound."""
        with pytest.raises(AttributeNotFound) as exc_info:
            evaluate(GetAttr(CONTEXT, "ip"))

        assert exc_info.value.attribute == "ip"

    def test_missing_entity_attribute_raises(self, evaluate):
        with pytest.raises(AttributeNotFound):
            evaluate(GetAttr(PRINCIPAL, "nickname"))

    def test_attribute_of_unknown_entity_raises(self, evaluate):
        """Given an entity absent from the store, dereferencing raises UnresolvedEntity."""
        with pytest.raises(UnresolvedEntity) as exc_info:
            evaluate(GetAttr(lit_ref("User", "ghost"), "department"))

        assert exc_info.value.uid == EntityUID("User", "ghost")

    def test_attribute_of_long_raises(self, evaluate):
        with pytest.raises(UnexpectedType):
            evaluate(GetAttr(lit_long(1), "x"))

    def test_has_on_present_and_absent(self, evaluate):
        assert evaluate(HasAttr(PRINCIPAL, "department")) == TRUE
        assert evaluate(HasAttr(PRINCIPAL, "nickname")) == FALSE
        assert evaluate(HasAttr(CONTEXT, "ip"), context={"ip": String("x")}) == TRUE

    def test_has_on_unknown_entity_is_false(self, evaluate):
        """Given an unresolved entity, `has` is false rather than an error."""
        assert evaluate(HasAttr(lit_ref("User", "ghost"), "department")) == FALSE


class TestLogic:
    """Tests for &&, ||, !, if-then-else."""

    def test_and_short_circuits_on_false(self, evaluate):
        """Given false && <error>, returns false without evaluating the right side."""
        assert evaluate(And(Literal(FALSE), BOOM)) == FALSE

    def test_or_short_circuits_on_true(self, evaluate):
        assert evaluate(Or(Literal(TRUE), BOOM)) == TRUE

    def test_and_evaluates_right_when_left_true(self, evaluate):
        with pytest.raises(AttributeNotFound):
            evaluate(And(Literal(TRUE), BOOM))

    def test_error_on_left_propagates(self, evaluate):
        with pytest.raises(AttributeNotFound):
            evaluate(Or(BOOM, Literal(TRUE)))

    def test_non_bool_operand_raises(self, evaluate):
        """Given 1 && true, raises UnexpectedType (no truthiness)."""
        with pytest.raises(UnexpectedType):
            evaluate(And(lit_long(1), Literal(TRUE)))

    def test_non_bool_right_operand_raises(self, evaluate):
        with pytest.raises(UnexpectedType):
            evaluate(And(Literal(TRUE), lit_long(1)))

    def test_not(self, evaluate):
        assert evaluate(Not(Literal(TRUE))) == FALSE
        with pytest.raises(UnexpectedType):
            evaluate(Not(lit_str("true")))

    def test_if_only_evaluates_taken_branch(self, evaluate):
        assert evaluate(If(Literal(TRUE), lit_long(1), BOOM)) == Long(1)
        assert evaluate(If(Literal(FALSE), BOOM, lit_long(2))) == Long(2)

    def test_if_condition_must_be_bool(self, evaluate):
        with pytest.raises(UnexpectedType):
            evaluate(If(lit_long(0), lit_long(1), lit_long(2)))


class TestComparison:
    """Tests for ==, != and ordering."""

    def test_equality(self, evaluate):
        assert evaluate(BinaryOp(Op.EQ, lit_long(1), lit_long(1))) == TRUE
        assert evaluate(BinaryOp(Op.NEQ, lit_str("a"), lit_str("b"))) == TRUE

    def test_cross_tag_equality_is_type_mismatch(self, evaluate):
        with pytest.raises(TypeMismatch):
            evaluate(BinaryOp(Op.EQ, lit_long(1), lit_str("1")))

    def test_principal_equals_entity_literal(self, evaluate):
        assert evaluate(BinaryOp(Op.EQ, PRINCIPAL, lit_ref("User", "alice"))) == TRUE

    @pytest.mark.parametrize(
        "op,expected",
        [(Op.LT, TRUE), (Op.LTE, TRUE), (Op.GT, FALSE), (Op.GTE, FALSE)],
    )
    def test_long_ordering(self, evaluate, op, expected):
        assert evaluate(BinaryOp(op, lit_long(1), lit_long(2))) == expected

    def test_ordering_strings_raises(self, evaluate):
        with pytest.raises(TypeMismatch):
            evaluate(BinaryOp(Op.LT, lit_str("a"), lit_str("b")))


class TestArithmetic:
    """Tests for +, -, * and unary minus."""

    def test_basic_arithmetic(self, evaluate):
        assert evaluate(BinaryOp(Op.ADD, lit_long(2), lit_long(3))) == Long(5)
        assert evaluate(BinaryOp(Op.SUB, lit_long(2), lit_long(3))) == Long(-1)
        assert evaluate(BinaryOp(Op.MUL, lit_long(-4), lit_long(3))) == Long(-12)
        assert evaluate(Neg(lit_long(5))) == Long(-5)

    def test_addition_overflow(self, evaluate):
        """Given LONG_MAX + 1, raises ArithmeticOverflow (no wraparound)."""
        with pytest.raises(ArithmeticOverflow):
            evaluate(BinaryOp(Op.ADD, lit_long(LONG_MAX), lit_long(1)))

    def test_negating_long_min_overflows(self, evaluate):
        with pytest.raises(ArithmeticOverflow):
            evaluate(Neg(lit_long(LONG_MIN)))

    def test_arithmetic_on_string_raises(self, evaluate):
        with pytest.raises(UnexpectedType):
            evaluate(BinaryOp(Op.ADD, lit_str("1"), lit_long(1)))


class TestHierarchyOperators:
    """Tests for `in` and `is`."""

    def test_in_transitive_group(self, evaluate):
        """Given alice -> admins -> staff, principal in Group::"staff" is true."""
        assert evaluate(BinaryOp(Op.IN, PRINCIPAL, lit_ref("Group", "staff"))) == TRUE

    def test_in_is_reflexive(self, evaluate):
        assert evaluate(BinaryOp(Op.IN, PRINCIPAL, lit_ref("User", "alice"))) == TRUE

    def test_in_unrelated(self, evaluate):
        assert evaluate(BinaryOp(Op.IN, PRINCIPAL, lit_ref("Album", "trips"))) == FALSE

    def test_in_set_of_entities(self, evaluate):
        targets = Literal(SetValue.of([EntityRef(EntityUID("Album", "x")), EntityRef(EntityUID("Group", "admins"))]))
        assert evaluate(BinaryOp(Op.IN, PRINCIPAL, targets)) == TRUE

    def test_in_set_with_non_entity_raises(self, evaluate):
        """Given a set mixing entities and Longs, raises even if an entity matches."""
        targets = Literal(SetValue.of([EntityRef(EntityUID("Group", "admins")), Long(1)]))

        with pytest.raises(UnexpectedType):
            evaluate(BinaryOp(Op.IN, PRINCIPAL, targets))

    def test_in_with_non_entity_left_raises(self, evaluate):
        with pytest.raises(UnexpectedType):
            evaluate(BinaryOp(Op.IN, lit_str("alice"), lit_ref("Group", "staff")))

    def test_is(self, evaluate):
        assert evaluate(Is(PRINCIPAL, "User")) == TRUE
        assert evaluate(Is(PRINCIPAL, "Group")) == FALSE

    def test_is_in(self, evaluate):
        assert evaluate(Is(PRINCIPAL, "User", lit_ref("Group", "staff"))) == TRUE
        assert evaluate(Is(PRINCIPAL, "User", lit_ref("Album", "trips"))) == FALSE

    def test_is_in_short_circuits_on_type(self, evaluate):
        """Given a type mismatch, the `in` operand is not evaluated."""
        assert evaluate(Is(PRINCIPAL, "Group", BOOM)) == FALSE


class TestSetsAndRecords:
    """Tests for set operators and literals."""

    def test_set_expression_deduplicates(self, evaluate):
        result = evaluate(SetExpr((lit_long(1), lit_long(1), lit_long(2))))
        assert result == SetValue.of([Long(1), Long(2)])

    def test_contains(self, evaluate):
        roles = Literal(SetValue.of([String("admin"), String("dev")]))
        assert evaluate(BinaryOp(Op.CONTAINS, roles, lit_str("dev"))) == TRUE
        assert evaluate(BinaryOp(Op.CONTAINS, roles, lit_long(1))) == FALSE

    def test_contains_all_and_any(self, evaluate):
        have = Literal(SetValue.of([Long(1), Long(2), Long(3)]))
        some = Literal(SetValue.of([Long(1), Long(3)]))
        other = Literal(SetValue.of([Long(4), Long(3)]))

        assert evaluate(BinaryOp(Op.CONTAINS_ALL, have, some)) == TRUE
        assert evaluate(BinaryOp(Op.CONTAINS_ALL, have, other)) == FALSE
        assert evaluate(BinaryOp(Op.CONTAINS_ANY, have, other)) == TRUE

    def test_contains_on_non_set_raises(self, evaluate):
        with pytest.raises(UnexpectedType):
            evaluate(BinaryOp(Op.CONTAINS, lit_str("abc"), lit_str("a")))

    def test_record_expression(self, evaluate):
        result = evaluate(RecordExpr((("a", lit_long(1)), ("b", lit_str("x")))))
        assert result == Record.of({"a": Long(1), "b": String("x")})


class TestLike:
    """Tests for wildcard matching."""

    @pytest.mark.parametrize(
        "pattern,text,expected",
        [
            ("*.jpg", "vacation.jpg", True),
            ("*.jpg", "vacation.png", False),
            ("va*on*", "vacation.jpg", True),
            ("exact", "exact", True),
            ("exact", "exactly", False),
            ("*", "", True),
            ("a\\*b", "a*b", True),
            ("a\\*b", "axxb", False),
            ("line*", "line1\nline2", True),
            ("a*a", "a", False),
            ("ab*ba", "aba", False),
            ("*a*a*", "aa", True),
            ("a**b", "ab", True),
            ("*.jpg", "x.jpg.jpg", True),
            ("*ab*c", "aabxc", True),
            ("a\\\\b", "a\\b", True),
        ],
    )
    def test_patterns(self, evaluate, pattern, text, expected):
        assert evaluate(Like.from_text(lit_str(text), pattern)).value is expected

    def test_regex_characters_are_literal(self, evaluate):
        """Given a pattern with regex metacharacters, they match literally."""
        assert evaluate(Like.from_text(lit_str("a.c"), "a.c")) == TRUE
        assert evaluate(Like.from_text(lit_str("abc"), "a.c")) == FALSE

    def test_like_on_non_string_raises(self, evaluate):
        with pytest.raises(UnexpectedType):
            evaluate(Like.from_text(lit_long(1), "*"))

    def test_many_wildcards_near_miss_is_fast(self):
        """Given 12 wildcards and a 40-character near miss, matching takes milliseconds."""
        # Arrange
        pattern = Like.from_text(CONTEXT, "*a" * 12 + "*b").pattern

        # Act
        started = time.perf_counter()
        matched = like_matches(pattern, "a" * 40)
        elapsed = time.perf_counter() - started

        # Assert
        assert matched is False
        assert elapsed < 0.01

    def test_many_wildcards_still_match(self):
        pattern = Like.from_text(CONTEXT, "*a" * 12 + "*b").pattern

        assert like_matches(pattern, "a" * 40 + "b") is True
        assert like_matches(pattern, "a" * 11 + "b") is False


class TestLikePatternText:
    """Tests for parsing and rendering like pattern text."""

    @pytest.mark.parametrize("text", ["a\\*b", "a\\\\b", "*x*", "plain", "\\\\\\*"])
    def test_pattern_text_reproduces_source(self, text):
        assert Like.from_text(CONTEXT, text).pattern_text() == text

    @pytest.mark.parametrize("text", ["a\\b", "\\n", "end\\"])
    def test_unknown_escape_rejected(self, text):
        """Given a backslash before anything but `*` or `\\`, the pattern is rejected."""
        with pytest.raises(ValueError, match="invalid escape"):
            Like.from_text(CONTEXT, text)


class TestExtensionCalls:
    """Tests for calling extension functions from expressions."""

    def test_ip_function(self, evaluate):
        expr = ExtensionCall("isLoopback", (ExtensionCall("ip", (lit_str("127.0.0.1"),)),))
        assert evaluate(expr) == TRUE

    def test_unknown_function_raises(self, evaluate):
        with pytest.raises(FunctionNotFound):
            evaluate(ExtensionCall("noSuchFunction", ()))


class TestLimits:
    """Tests for recursion and deadline limits."""

    def test_deep_expression_raises_expression_too_deep(self, evaluate):
        """Given nesting deeper than the interpreter stack, raises ExpressionTooDeep."""
        expr = Literal(TRUE)
        for _ in range(5_000):
            expr = Not(expr)

        with pytest.raises(ExpressionTooDeep):
            evaluate(expr)

    def test_expired_deadline_raises_timeout(self, photo_store, make_request):
        """Given an already expired deadline, evaluation aborts with AuthorizationTimeout."""
        # Arrange - large enough to reach a periodic deadline check
        expr = SetExpr(tuple(lit_long(i) for i in range(1000)))
        deadline = Deadline(expires_at=time.monotonic() - 1, budget_seconds=0.001)
        evaluator = Evaluator(make_request(), photo_store, deadline=deadline)

        # Act / Assert
        with pytest.raises(AuthorizationTimeout):
            evaluator.evaluate(expr)

    def test_deadline_after(self):
        deadline = Deadline.after(60)

        assert not deadline.expired
        deadline.check()
        assert deadline.budget_seconds == 60
