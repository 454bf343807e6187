"""Reader for the discrete subset of the Bayesian Interchange Format (BIF).

Supported declarations::

    network "name" { }
    variable a {
      type discrete [ 2 ] { true, false };
    }
    probability ( a ) {
      table 0.5, 0.5;
    }
    probability ( d | b, c ) {
      (true, true) 0.9, 0.1;
      (true, false) 0.7, 0.3;
      default 0.5, 0.5;
    }

A ``table`` statement inside a conditional block lists the rows back to back
in CPT order, i.e. the last parent varies fastest. Rows given as parent
value tuples are placed at the same position regardless of the order they
appear in the file.
"""
from __future__ import annotations

import gzip
import logging
import math
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from exbn.core.errors import BIFParseError, EvidenceError
from exbn.cpt import cpt_row_index
from exbn.network import Network, Variable

logger = logging.getLogger(__name__)

_BLOCK_RE = re.compile(r"\b(network|variable|probability)\b")
_DISCRETE_RE = re.compile(
    r"type\s+discrete\s*(?:\[\s*(\d+)\s*\])?\s*\{([^}]*)\}", re.DOTALL
)
_PROB_HEADER_RE = re.compile(
    r"^\(\s*([^|)]+?)\s*(?:\|\s*([^)]*?))?\s*\)$", re.DOTALL
)
_ROW_RE = re.compile(r"^\(([^)]*)\)\s*(.*)$", re.DOTALL)
_NUMBER_SPLIT_RE = re.compile(r"[,\s]+")


@dataclass
class _ProbabilityBlock:
    target: str
    parents: List[str]
    statements: List[Tuple[str, int]] = field(default_factory=list)
    line: int = 0


def _strip_comments(text: str) -> str:
    # Keep newlines so that line numbers stay valid.
    text = re.sub(
        r"/\*.*?\*/", lambda m: "\n" * m.group(0).count("\n"), text, flags=re.DOTALL
    )
    return re.sub(r"//[^\n]*", "", text)


def _line_of(text: str, pos: int) -> int:
    return text.count("\n", 0, pos) + 1


def _matching_brace(text: str, open_pos: int) -> int:
    depth = 0
    for i in range(open_pos, len(text)):
        if text[i] == "{":
            depth += 1
        elif text[i] == "}":
            depth -= 1
            if depth == 0:
                return i
    raise BIFParseError("unbalanced '{'", line=_line_of(text, open_pos))


def _split_names(raw: str) -> List[str]:
    return [part.strip().strip('"') for part in raw.split(",") if part.strip()]


def _parse_numbers(raw: str, line: int) -> List[float]:
    out = []
    for tok in _NUMBER_SPLIT_RE.split(raw.strip()):
        if not tok:
            continue
        try:
            out.append(float(tok))
        except ValueError:
            raise BIFParseError(f"invalid probability '{tok}'", line=line) from None
    return out


def _parse_variable(name: str, body: str, line: int) -> Tuple[str, ...]:
    m = _DISCRETE_RE.search(body)
    if m is None:
        raise BIFParseError(
            f"variable '{name}' has no 'type discrete {{...}}' declaration", line=line
        )
    values = tuple(_split_names(m.group(2)))
    if not values:
        raise BIFParseError(f"variable '{name}' has an empty domain", line=line)
    if len(set(values)) != len(values):
        raise BIFParseError(f"variable '{name}' has duplicate values", line=line)
    if m.group(1) is not None and int(m.group(1)) != len(values):
        raise BIFParseError(
            f"variable '{name}' declares {m.group(1)} values but lists {len(values)}",
            line=line,
        )
    return values


def _build_cpt(
    block: _ProbabilityBlock, domains: Dict[str, Tuple[str, ...]]
) -> List[List[float]]:
    card = len(domains[block.target])
    parent_cards = [len(domains[p]) for p in block.parents]
    n_rows = math.prod(parent_cards)
    rows: List[Optional[List[float]]] = [None] * n_rows
    default: Optional[List[float]] = None

    for stmt, line in block.statements:
        if stmt.startswith("table"):
            probs = _parse_numbers(stmt[len("table"):], line)
            if len(probs) != n_rows * card:
                raise BIFParseError(
                    f"table of '{block.target}' has {len(probs)} entries, "
                    f"expected {n_rows * card}",
                    line=line,
                )
            rows = [probs[r * card : (r + 1) * card] for r in range(n_rows)]
        elif stmt.startswith("default"):
            default = _parse_numbers(stmt[len("default"):], line)
            if len(default) != card:
                raise BIFParseError(
                    f"default row of '{block.target}' has {len(default)} entries, "
                    f"expected {card}",
                    line=line,
                )
        elif stmt.startswith("("):
            m = _ROW_RE.match(stmt)
            if m is None:
                raise BIFParseError(f"malformed row '{stmt}'", line=line)
            labels = _split_names(m.group(1))
            if len(labels) != len(block.parents):
                raise BIFParseError(
                    f"row {tuple(labels)} of '{block.target}' names "
                    f"{len(labels)} parent values, expected {len(block.parents)}",
                    line=line,
                )
            digits = []
            for parent, label in zip(block.parents, labels):
                if label not in domains[parent]:
                    raise BIFParseError(
                        f"'{label}' is not a value of parent '{parent}'", line=line
                    )
                digits.append(domains[parent].index(label))
            probs = _parse_numbers(m.group(2), line)
            if len(probs) != card:
                raise BIFParseError(
                    f"row {tuple(labels)} of '{block.target}' has {len(probs)} "
                    f"entries, expected {card}",
                    line=line,
                )
            row = cpt_row_index(digits, parent_cards)
            if rows[row] is not None:
                raise BIFParseError(
                    f"row {tuple(labels)} of '{block.target}' is given twice",
                    line=line,
                )
            rows[row] = probs
        else:
            raise BIFParseError(f"unexpected statement '{stmt}'", line=line)

    missing = [r for r, row in enumerate(rows) if row is None]
    if missing:
        if default is None:
            raise BIFParseError(
                f"probability block of '{block.target}' is missing {len(missing)} "
                f"of {n_rows} rows",
                line=block.line,
            )
        for r in missing:
            rows[r] = list(default)
    return rows


def parse_bif(text: str) -> Network:
    """Parse BIF source into a :class:`Network` with ids in declaration order."""
    text = _strip_comments(text)
    domains: Dict[str, Tuple[str, ...]] = {}
    blocks: Dict[str, _ProbabilityBlock] = {}

    pos = 0
    while True:
        m = _BLOCK_RE.search(text, pos)
        if m is None:
            break
        kind = m.group(1)
        line = _line_of(text, m.start())
        open_pos = text.find("{", m.end())
        if open_pos < 0:
            raise BIFParseError(f"'{kind}' declaration without a body", line=line)
        close_pos = _matching_brace(text, open_pos)
        header = text[m.end() : open_pos].strip()
        body = text[open_pos + 1 : close_pos]
        pos = close_pos + 1

        if kind == "network":
            continue
        if kind == "variable":
            name = header.strip('"')
            if not name:
                raise BIFParseError("variable without a name", line=line)
            if name in domains:
                raise BIFParseError(f"variable '{name}' declared twice", line=line)
            domains[name] = _parse_variable(name, body, line)
            continue

        hm = _PROB_HEADER_RE.match(header)
        if hm is None:
            raise BIFParseError(f"malformed probability header '{header}'", line=line)
        target = hm.group(1).strip().strip('"')
        parents = _split_names(hm.group(2) or "")
        if target in blocks:
            raise BIFParseError(f"probability of '{target}' given twice", line=line)
        block = _ProbabilityBlock(target=target, parents=parents, line=line)
        offset = open_pos + 1
        for raw in body.split(";"):
            stmt = " ".join(raw.split())
            if stmt:
                block.statements.append((stmt, _line_of(text, offset + len(raw) - len(raw.lstrip()))))
            offset += len(raw) + 1
        blocks[target] = block

    for target, block in blocks.items():
        for name in [target] + block.parents:
            if name not in domains:
                raise BIFParseError(f"unknown variable '{name}'", line=block.line)
        if len(set(block.parents)) != len(block.parents):
            raise BIFParseError(
                f"probability of '{target}' lists a parent twice", line=block.line
            )

    variables = []
    for name, values in domains.items():
        if name not in blocks:
            raise BIFParseError(f"variable '{name}' has no probability block")
        block = blocks[name]
        variables.append(
            Variable(
                name=name,
                values=values,
                parents=tuple(block.parents),
                cpt=tuple(tuple(r) for r in _build_cpt(block, domains)),
            )
        )
    network = Network.from_variables(variables)
    logger.debug("Parsed %d variables, %d edges", len(network), len(network.edges()))
    return network


def read_bif(path: str | Path) -> Network:
    """Read a ``.bif`` (or gzip compressed ``.bif.gz``) file."""
    path = Path(path)
    if path.suffix == ".gz":
        with gzip.open(path, "rt", encoding="utf-8") as f:
            text = f.read()
    else:
        text = path.read_text(encoding="utf-8")
    network = parse_bif(text)
    logger.info("Loaded %s: %d variables", path, len(network))
    return network


def parse_evidence(text: Optional[str]) -> Dict[str, str]:
    """Parse ``"a=true, c=false"`` into ``{"a": "true", "c": "false"}``."""
    evidence: Dict[str, str] = {}
    if not text or not text.strip():
        return evidence
    for pair in text.split(","):
        if not pair.strip():
            continue
        if "=" not in pair:
            raise EvidenceError(f"Evidence must be name=value (got '{pair.strip()}')")
        name, value = (part.strip() for part in pair.split("=", 1))
        if not name or not value:
            raise EvidenceError(f"Evidence must be name=value (got '{pair.strip()}')")
        evidence[name] = value
    return evidence
