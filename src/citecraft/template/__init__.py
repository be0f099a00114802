"""Citation template core.

Addend model, tokenizer, builder with undo, and the offset/fold
reconciler that maps an edited text buffer onto template parts.
"""

from .addends import (
    Addend,
    Expression,
    Literal,
    Variable,
    addend_kind,
    collect_variables,
    compiled_text,
    display_text,
    escape_literal_text,
    unescape_literal,
    unescape_literal_text,
)
from .builder import (
    CitationTemplate,
    IndexOutOfRangeError,
    InvertedRangeError,
    NonIntegerIndexError,
    WrapRangeError,
)
from .folding import (
    PLACEHOLDER,
    FoldState,
    SelectionError,
    compile_folded,
    expand_with_index_map,
    fold_selection,
    is_balanced_span,
    mark_expression,
    mark_literal,
    merge_ranges,
    unfold_all,
)
from .segments import (
    EXPR,
    LITERAL,
    Segment,
    compile_segments,
    locate,
    mark_range,
    new_doc,
    normalize,
    split_at,
)
from .tokenizer import (
    CompiledTemplateError,
    parse,
    parse_compiled,
    tokenize_citation_template,
)

__all__ = [
    "Addend",
    "CitationTemplate",
    "CompiledTemplateError",
    "EXPR",
    "Expression",
    "FoldState",
    "IndexOutOfRangeError",
    "InvertedRangeError",
    "LITERAL",
    "Literal",
    "NonIntegerIndexError",
    "PLACEHOLDER",
    "Segment",
    "SelectionError",
    "Variable",
    "WrapRangeError",
    "addend_kind",
    "collect_variables",
    "compile_folded",
    "compile_segments",
    "compiled_text",
    "display_text",
    "escape_literal_text",
    "expand_with_index_map",
    "fold_selection",
    "is_balanced_span",
    "locate",
    "mark_expression",
    "mark_literal",
    "mark_range",
    "merge_ranges",
    "new_doc",
    "normalize",
    "parse",
    "parse_compiled",
    "split_at",
    "tokenize_citation_template",
    "unescape_literal",
    "unescape_literal_text",
    "unfold_all",
]
