"""
Few-Shot Example Model
======================
A prior (source file, generated tests) pair replayed ahead of the real
prompt to steer the style of the model's answer.

Fields:
    file_name  — name shown in the replayed prompt
    code       — source code of the example file
    tests      — the tests the assistant is shown to have answered with
"""
from pydantic import BaseModel


class Example(BaseModel):
    file_name: str
    code: str
    tests: str
