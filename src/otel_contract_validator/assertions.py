"""
Test helpers asserting that recorded spans satisfy a contract.

Typical use in a test suite::

    with SpanRecorder.install(tracer_provider) as recorder:
        client.post("/payments", json=payload)

    assert_contract_passes("contracts/observability-contracts.yaml",
                           "Payment Flow Success", recorder.spans)
"""

from typing import Iterable, Union
from pathlib import Path

from .config import load_contracts
from .errors import ConfigurationError, ContractAssertionError
from .models import ContractsFile, Span, ValidationResult
from .sources.in_memory import InMemoryProvider
from .validator import Validator


def validate_single(contracts_path: Union[str, Path], contract_name: str, spans: Iterable[Span]) -> ValidationResult:
    """
    Validate one named contract from a contracts file against the given spans.

    Args:
        contracts_path: Path to the YAML contracts file
        contract_name: Name of the contract to validate
        spans: Spans to validate, filtered by the contract's query and window

    Returns:
        The validation result for the contract

    Raises:
        ConfigurationError: If the file cannot be loaded or has no such contract
    """
    contracts_file = load_contracts(contracts_path)
    contract = contracts_file.get(contract_name)
    if contract is None:
        raise ConfigurationError(f"Contract '{contract_name}' not found in file '{contracts_path}'.")

    single = ContractsFile(version=contracts_file.version, contracts=[contract])
    results = Validator(InMemoryProvider(spans)).validate(single)
    return results[0]


def assert_contract_passes(contracts_path: Union[str, Path], contract_name: str, spans: Iterable[Span]) -> None:
    """
    Assert that a named contract passes against the given spans.

    Raises:
        ContractAssertionError: If the contract fails, listing every detail
    """
    result = validate_single(contracts_path, contract_name, spans)
    if not result.passed:
        details = "\n - ".join(result.details)
        raise ContractAssertionError(
            f"Contract '{contract_name}' failed: {result.message}\n - {details}"
        )
