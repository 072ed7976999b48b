"""
Verifiers for generated code carried inside a result.

Lightweight textual checks, not a parser. Like layer 2 they produce
warnings, never exceptions.
"""

import json

DUPLICATE_OPERATORS = (";;", ",,", "::")


class TypeScriptVerifier:
    """Structural sanity checks for generated TypeScript."""

    @staticmethod
    def verify_interface(code: str) -> list[str]:
        """
        Check an interface definition.

        Returns:
            Warnings for a missing ``interface`` keyword, missing or
            unmatched braces, and doubled operators
        """
        warnings: list[str] = []

        if "interface " not in code:
            warnings.append("Code does not contain an interface definition")

        open_braces, close_braces = code.count("{"), code.count("}")
        if not open_braces or not close_braces:
            warnings.append("Interface is missing braces")
        elif open_braces != close_braces:
            warnings.append(f"Unmatched braces: {open_braces} open, {close_braces} close")

        doubled = [op for op in DUPLICATE_OPERATORS if op in code]
        if doubled:
            warnings.append(f"Code contains duplicate operators: {' '.join(doubled)}")

        return warnings

    @staticmethod
    def verify_method(code: str) -> list[str]:
        warnings: list[str] = []
        if "(" not in code or ")" not in code:
            warnings.append("Method is missing a parameter list")
        if ":" not in code and "void" not in code:
            warnings.append("Method may be missing a return type")
        return warnings


class JSONTextVerifier:
    """Checks string properties that are expected to hold JSON documents."""

    @staticmethod
    def verify(text: str) -> list[str]:
        try:
            json.loads(text)
        except json.JSONDecodeError as e:
            return [f"Invalid JSON: {e.msg} (line {e.lineno}, column {e.colno})"]
        return []
