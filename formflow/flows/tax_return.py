"""Code-defined registry for the tax return service."""

from __future__ import annotations

import datetime as dt

from formflow.core.answers.models import Question
from formflow.core.domain.enums import AnswerKind, TerminalOutcome
from formflow.core.domain.models import Intent, Step, Task
from formflow.core.registry.registry import StepRegistry
from formflow.core.rules.conditions import eq, gt
from formflow.core.rules.types import default, rule

FULL_NAME = Question("fullName", AnswerKind.TEXT)
DATE_OF_BIRTH = Question(
    "dateOfBirth",
    AnswerKind.DATE,
    min_value=dt.date(1900, 1, 1),
    max_value=dt.date(2010, 12, 31),
)
TAX_TYPE = Question("taxType", AnswerKind.CHOICE, options=("income", "vat", "other"))
ANNUAL_INCOME = Question("annualIncome", AnswerKind.NUMBER, min_value=0, max_value=10_000_000)
FOREIGN_INCOME = Question("foreignIncome", AnswerKind.BOOLEAN)
VAT_REGISTERED = Question("vatRegistered", AnswerKind.BOOLEAN)
DECLARATION = Question("declarationConfirmed", AnswerKind.BOOLEAN)

HIGHER_RATE_THRESHOLD = 100_000


def build_tax_return_registry() -> StepRegistry:
    steps = [
        Step("your-name", (FULL_NAME,), (default("date-of-birth"),)),
        Step("date-of-birth", (DATE_OF_BIRTH,), (default(TerminalOutcome.END_OF_TASK),)),
        Step(
            "tax-type",
            (TAX_TYPE,),
            (
                rule(eq("taxType", "income"), "income-details", "income"),
                rule(eq("taxType", "vat"), "vat-details", "vat"),
                default("unsupported-tax"),
            ),
        ),
        Step(
            "income-details",
            (ANNUAL_INCOME,),
            (
                rule(gt("annualIncome", HIGHER_RATE_THRESHOLD), "foreign-income", "higher-rate"),
                default(TerminalOutcome.END_OF_TASK),
            ),
        ),
        Step(
            "foreign-income",
            (FOREIGN_INCOME,),
            (default(TerminalOutcome.END_OF_TASK),),
        ),
        Step(
            "vat-details",
            (VAT_REGISTERED,),
            (
                rule(eq("vatRegistered", False), TerminalOutcome.INELIGIBLE, "not-vat-registered"),
                default(TerminalOutcome.END_OF_TASK),
            ),
        ),
        Step("unsupported-tax", (), (default(TerminalOutcome.INELIGIBLE),)),
        Step(
            "declaration",
            (DECLARATION,),
            (
                rule(eq("declarationConfirmed", True), TerminalOutcome.SUBMITTED, "confirmed"),
                default(TerminalOutcome.END_OF_TASK),
            ),
        ),
    ]
    tasks = [
        Task("about-you", ("your-name", "date-of-birth")),
        Task("tax", ("tax-type", "income-details", "foreign-income", "vat-details", "unsupported-tax")),
        Task("declare", ("declaration",)),
    ]
    intents = [Intent("file-return", ("about-you", "tax", "declare"))]
    return StepRegistry(steps=steps, tasks=tasks, intents=intents)
