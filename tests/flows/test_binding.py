"""Tests for payload type checks and input type inference."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Annotated, Any, Literal, Optional

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from remoteflow.flows import accepts, infer_input_type
from tests.accounts import PHONE, Acct, Bal, Id, Num, SingleLineBalance, noop
from tests.strategies import domain_values, phone_numbers


class TestAccepts:
    """Tests for accepts()."""

    def test_plain_classes(self) -> None:
        assert accepts(PHONE, Num)
        assert not accepts(PHONE, Id)
        assert accepts(True, int)

    def test_any_and_object(self) -> None:
        assert accepts(PHONE, Any)
        assert accepts(None, object)

    def test_none(self) -> None:
        assert accepts(None, None)
        assert not accepts(0, type(None))

    def test_unions(self) -> None:
        assert accepts(Id(1), Num | Id)
        assert accepts(None, Optional[Num])  # noqa: UP045
        assert not accepts(Acct('a'), Num | Id)

    def test_parameterised_lists(self) -> None:
        assert accepts([PHONE, Num('2')], list[Num])
        assert accepts([], list[Num])
        assert not accepts([PHONE, Id(1)], list[Num])
        assert not accepts((PHONE,), list[Num])

    def test_abstract_sequences_and_mappings(self) -> None:
        assert accepts((PHONE,), Sequence[Num])
        assert accepts({Acct('a'): Bal(1.0)}, Mapping[Acct, Bal])
        assert not accepts({Acct('a'): 1.0}, dict[Acct, Bal])

    def test_tuples(self) -> None:
        assert accepts((Id(1), Bal(1.0)), tuple[Id, Bal])
        assert not accepts((Id(1),), tuple[Id, Bal])
        assert accepts((1, 2, 3), tuple[int, ...])
        assert not accepts((1, 'x'), tuple[int, ...])

    def test_literal_and_annotated(self) -> None:
        assert accepts('alpha', Literal['alpha', 'beta'])
        assert not accepts('gamma', Literal['alpha', 'beta'])
        assert accepts(3, Annotated[int, 'meta'])


class TestInferInputType:
    """Tests for infer_input_type()."""

    def test_function_annotation(self) -> None:
        assert infer_input_type(noop) is Num

    def test_async_call_method(self) -> None:
        flow = SingleLineBalance(None, None)  # type: ignore[arg-type]
        assert infer_input_type(flow) is Num

    def test_unannotated_accepts_anything(self) -> None:
        assert infer_input_type(lambda x: x) is object

    def test_no_parameters(self) -> None:
        assert infer_input_type(lambda: None) is object

    def test_generic_annotation(self) -> None:
        async def total(balances: list[Bal]) -> Bal:
            return Bal(sum(b.v for b in balances))

        assert infer_input_type(total) == list[Bal]

    def test_unresolvable_annotation(self) -> None:
        def broken(x: 'NoSuchType') -> None:  # noqa: F821
            return None

        with pytest.raises(TypeError, match='input_type'):
            infer_input_type(broken)


@pytest.mark.hypothesis_property
@given(values=st.lists(phone_numbers, max_size=10))
@settings(suppress_health_check=[HealthCheck.function_scoped_fixture])
def test_property_list_of_numbers_accepted(values: list[Num]) -> None:
    """Property: any list of phone numbers is a list[Num] and never a list[Id] unless empty."""
    assert accepts(values, list[Num])
    assert accepts(values, list[Id]) == (not values)


@pytest.mark.hypothesis_property
@given(value=domain_values)
@settings(suppress_health_check=[HealthCheck.function_scoped_fixture])
def test_property_accepts_matches_isinstance(value: Any) -> None:
    """Property: for plain classes accepts() agrees with isinstance()."""
    for tp in (Id, Num, Acct, Bal):
        assert accepts(value, tp) == isinstance(value, tp)
