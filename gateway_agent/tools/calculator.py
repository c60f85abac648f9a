"""Arithmetic tool."""

from typing import Literal

from langchain_core.tools import tool
from pydantic import BaseModel, Field

from gateway_agent.tools.base import format_number


class CalculatorInput(BaseModel):
    """Input schema for the calculator tool."""

    operation: Literal["add", "subtract", "multiply", "divide"] = Field(
        ..., description="The operation to perform."
    )
    num1: float = Field(..., description="The first number.")
    num2: float = Field(..., description="The second number.")


def create_calculator_tool():
    @tool("calculator", args_schema=CalculatorInput)
    async def calculator_handler(operation: str, num1: float, num2: float) -> str:
        """Perform a simple arithmetic calculation (add, subtract, multiply, divide) on two numbers."""
        match operation:
            case "add":
                result = num1 + num2
            case "subtract":
                result = num1 - num2
            case "multiply":
                result = num1 * num2
            case "divide":
                if num2 == 0:
                    return "Error: Division by zero"
                result = num1 / num2
            case _:
                return f'Error: Unknown operation "{operation}"'
        return format_number(result)

    return calculator_handler
