"""
Hydrolang AST Transformer
Converts the Lark parse tree into Hydrolang statement and expression trees.
"""

import logging
from typing import Any, List, Optional, Union

from lark import Transformer, v_args
from lark.lexer import Token as LarkToken
from typing_extensions import TypeAlias

from ...shared import (
    Assign, DamDeclaration, Expression, Grouping, ParseError, Program, RainfallDeclaration,
    RiverCombination, RiverCombinationExpr, RiverDeclaration, RiverDeclarationWithFlow,
    RiverFlow, SourceLocation, Statement, Token, TokenKind, UnaryExpression, UnaryOp,
    Variable, VariableDeclaration,
)
from .expressions import BinaryExpressionParser
from .literals import LiteralParser

LarkMeta: TypeAlias = Any  # Lark's internal Meta object

logger: logging.Logger = logging.getLogger(__name__)


class _DamParam:
    """Internal result of a dam_param rule"""
    __slots__ = ('key', 'token')

    def __init__(self, key: str, token: Token):
        self.key = key
        self.token = token


@v_args(inline=True, meta=True)
class HydroTransformer(Transformer):
    """
    Builds the syntax trees consumed by the network builder.

    Anonymous keyword and punctuation tokens are filtered by Lark, so each
    callback only receives names, numbers, operators and sub-trees.
    """

    def __init__(self) -> None:
        super().__init__()
        self.expression_parser = BinaryExpressionParser(self._extract_location)
        self.current_file: str = ""  # Must be set by parser before use

    def _extract_location(self, meta: LarkMeta) -> SourceLocation:
        """Extract location from Lark meta object"""
        if not self.current_file:
            raise RuntimeError(
                "Parser bug: current_file not set. "
                "Parser must set current_file before transforming."
            )
        if meta is None or getattr(meta, 'empty', True):
            return SourceLocation(file=self.current_file, line=0, column=0)
        return SourceLocation(
            file=self.current_file,
            line=meta.line,
            column=meta.column,
            end_line=getattr(meta, 'end_line', 0) or 0,
            end_column=getattr(meta, 'end_column', 0) or 0,
        )

    def _token(self, token: LarkToken, kind: TokenKind) -> Token:
        """Keep a Lark token verbatim, with its own location"""
        location = SourceLocation(
            file=self.current_file,
            line=token.line,
            column=token.column,
            end_line=token.end_line or 0,
            end_column=token.end_column or 0,
        )
        return Token(kind=kind, lexeme=str(token), location=location)

    def _name(self, token: LarkToken) -> Token:
        return self._token(token, TokenKind.IDENTIFIER)

    def _number(self, token: LarkToken) -> Token:
        return self._token(token, TokenKind.NUMBER)

    # =========================================================================
    # PROGRAM STRUCTURE
    # =========================================================================

    def program(self, meta: LarkMeta, *statements: Statement) -> Program:
        return Program(statements=list(statements), location=self._extract_location(meta))

    # =========================================================================
    # DECLARATIONS
    # =========================================================================

    def rainfall_decl(self, meta: LarkMeta, value: LarkToken) -> RainfallDeclaration:
        """Grammar: 'rainfall' '=' NUMBER ';'"""
        return RainfallDeclaration(value=self._number(value), location=self._extract_location(meta))

    def river_decl_with_flow(self, meta: LarkMeta, name: LarkToken, river_type: LarkToken,
                             flow_rate: LarkToken) -> RiverDeclarationWithFlow:
        """Grammar: 'river' NAME '=' NAME 'with' NUMBER ';'"""
        return RiverDeclarationWithFlow(
            name=self._name(name),
            type=self._name(river_type),
            flow_rate=self._number(flow_rate),
            location=self._extract_location(meta),
        )

    def river_assign(self, meta: LarkMeta, name: LarkToken,
                     expression: Expression) -> Union[RiverDeclaration, RiverCombinationExpr]:
        """
        Grammar: 'river' NAME '=' expr ';'

        A bare identifier on the right-hand side names the river's type
        (`river R = root;`); anything else is a combination expression.
        """
        location = self._extract_location(meta)
        if isinstance(expression, Variable):
            return RiverDeclaration(name=self._name(name), type=expression.name, location=location)
        return RiverCombinationExpr(name=self._name(name), expression=expression, location=location)

    def river_flow(self, meta: LarkMeta, source: LarkToken, target: LarkToken) -> RiverFlow:
        """Grammar: 'river' NAME '->' NAME ';'"""
        return RiverFlow(
            source=self._name(source),
            target=self._name(target),
            location=self._extract_location(meta),
        )

    def river_combination(self, meta: LarkMeta, name: LarkToken, sources: List[Token]) -> RiverCombination:
        """Grammar: 'river' NAME 'combine' name_list ';'"""
        return RiverCombination(
            name=self._name(name),
            sources=tuple(sources),
            location=self._extract_location(meta),
        )

    def name_list(self, meta: LarkMeta, *names: LarkToken) -> List[Token]:
        return [self._name(name) for name in names]

    def dam_decl(self, meta: LarkMeta, name: LarkToken, *params: _DamParam) -> DamDeclaration:
        """Grammar: 'dam' NAME ('with' dam_param (',' dam_param)*)? ';' - a repeated parameter overrides"""
        values = {param.key: param.token for param in params}
        return DamDeclaration(
            name=self._name(name),
            multiplier=values.get('multiplier'),
            cap=values.get('cap'),
            location=self._extract_location(meta),
        )

    def multiplier_param(self, meta: LarkMeta, value: LarkToken) -> _DamParam:
        return _DamParam('multiplier', self._number(value))

    def cap_param(self, meta: LarkMeta, value: LarkToken) -> _DamParam:
        return _DamParam('cap', self._number(value))

    def var_decl(self, meta: LarkMeta, name: LarkToken,
                 initializer: Optional[Expression] = None) -> VariableDeclaration:
        """Grammar: 'var' NAME ('=' expr)? ';'"""
        return VariableDeclaration(
            name=self._name(name),
            initializer=initializer,
            location=self._extract_location(meta),
        )

    # =========================================================================
    # EXPRESSIONS
    # =========================================================================

    def expr(self, meta: LarkMeta, expression: Expression) -> Expression:
        return expression

    def assign(self, meta: LarkMeta, target: Expression, value: Expression) -> Assign:
        """Grammar: equality_expr '=' assignment - only a bare name is a valid target"""
        location = self._extract_location(meta)
        if not isinstance(target, Variable):
            raise ParseError("Invalid assignment target.", self.current_file, target.location or location)
        return Assign(name=target.name, value=value, location=location)

    def assignment(self, meta: LarkMeta, expression: Expression) -> Expression:
        return expression

    def equality_expr(self, meta: LarkMeta, *args: Union[Expression, LarkToken]) -> Expression:
        return self.expression_parser.fold_left(meta, args)

    def relational_expr(self, meta: LarkMeta, *args: Union[Expression, LarkToken]) -> Expression:
        return self.expression_parser.fold_left(meta, args)

    def additive_expr(self, meta: LarkMeta, *args: Union[Expression, LarkToken]) -> Expression:
        return self.expression_parser.fold_left(meta, args)

    def multiplicative_expr(self, meta: LarkMeta, *args: Union[Expression, LarkToken]) -> Expression:
        return self.expression_parser.fold_left(meta, args)

    def unary_operation(self, meta: LarkMeta, operator: LarkToken, operand: Expression) -> UnaryExpression:
        return UnaryExpression(
            operator=UnaryOp(str(operator)),
            operand=operand,
            location=self._extract_location(meta),
        )

    def unary_expr(self, meta: LarkMeta, operand: Expression) -> Expression:
        return operand

    def grouping(self, meta: LarkMeta, expression: Expression) -> Grouping:
        return Grouping(expression=expression, location=self._extract_location(meta))

    def variable(self, meta: LarkMeta, name: LarkToken) -> Variable:
        return Variable(name=self._name(name), location=self._extract_location(meta))

    def number_literal(self, meta: LarkMeta, token: LarkToken):
        return LiteralParser.parse(token, self._extract_location(meta))

    def string_literal(self, meta: LarkMeta, token: LarkToken):
        return LiteralParser.parse(token, self._extract_location(meta))

    # Keyword literals have their token filtered out, so they arrive without children
    def true_literal(self, meta: LarkMeta):
        return LiteralParser.parse(LarkToken('TRUE', 'true'), self._extract_location(meta))

    def false_literal(self, meta: LarkMeta):
        return LiteralParser.parse(LarkToken('FALSE', 'false'), self._extract_location(meta))

    def nil_literal(self, meta: LarkMeta):
        return LiteralParser.parse(LarkToken('NIL', 'nil'), self._extract_location(meta))
