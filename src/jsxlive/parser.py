"""Component source parser — converts a token stream into an AST."""

from __future__ import annotations

from jsxlive.ast import (
    ArrayExpression,
    ArrayPattern,
    AssignmentExpression,
    AssignmentPattern,
    BinaryExpression,
    BlockStatement,
    BreakStatement,
    CallExpression,
    ChainExpression,
    Class,
    ClassDeclaration,
    ClassMember,
    ConditionalExpression,
    ContinueStatement,
    EmptyStatement,
    ExportDefaultDeclaration,
    ExportNamedDeclaration,
    ExportSpecifier,
    Expression,
    ExpressionStatement,
    ForOfStatement,
    ForStatement,
    Function,
    FunctionDeclaration,
    Identifier,
    IfStatement,
    ImportDeclaration,
    JSXAttribute,
    JSXChild,
    JSXElement,
    JSXExpressionContainer,
    JSXFragment,
    JSXSpreadAttribute,
    JSXText,
    Literal,
    LogicalExpression,
    MemberExpression,
    NewExpression,
    ObjectExpression,
    ObjectPattern,
    Pattern,
    PatternProperty,
    Program,
    Property,
    RestElement,
    ReturnStatement,
    SequenceExpression,
    SpreadElement,
    Statement,
    Super,
    SwitchCase,
    SwitchStatement,
    TemplateLiteral,
    ThisExpression,
    ThrowStatement,
    TryStatement,
    UnaryExpression,
    UpdateExpression,
    VariableDeclaration,
    VariableDeclarator,
    WhileStatement,
)
from jsxlive.errors import ParseError
from jsxlive.lexer import tokenize
from jsxlive.tokens import Position, Span, Token, TokenType


class Parser:
    """Recursive descent parser for component token streams.

    TypeScript annotations are recognised only far enough to skip them.
    """

    def __init__(self, tokens: list[Token], source: str, filename: str) -> None:
        self._tokens = tokens
        self._source = source
        self._filename = filename
        self._pos = 0

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def _peek(self, offset: int = 0) -> Token:
        idx = self._pos + offset
        if idx < len(self._tokens):
            return self._tokens[idx]
        return self._tokens[-1]  # EOF

    def _at(self, *types: TokenType) -> bool:
        return self._peek().type in types

    def _at_eof(self) -> bool:
        return self._peek().type == TokenType.EOF

    def _at_punct(self, *values: str) -> bool:
        tok = self._peek()
        return tok.type == TokenType.PUNCT and tok.value in values

    def _at_keyword(self, *values: str) -> bool:
        tok = self._peek()
        return tok.type == TokenType.KEYWORD and tok.value in values

    def _at_contextual(self, value: str) -> bool:
        tok = self._peek()
        return tok.type == TokenType.IDENTIFIER and tok.value == value

    def _advance(self) -> Token:
        tok = self._tokens[self._pos]
        if tok.type != TokenType.EOF:
            self._pos += 1
        return tok

    def _expect(self, tt: TokenType, message: str) -> Token:
        tok = self._peek()
        if tok.type != tt:
            raise self._error(message, tok.span)
        return self._advance()

    def _expect_punct(self, value: str, message: str | None = None) -> Token:
        if not self._at_punct(value):
            raise self._error(message or f"expected '{value}'")
        return self._advance()

    def _eat_punct(self, value: str) -> bool:
        if self._at_punct(value):
            self._advance()
            return True
        return False

    def _prev_end(self) -> Position:
        """End position of the previously consumed token."""
        if self._pos > 0:
            return self._tokens[self._pos - 1].span.end
        return self._tokens[0].span.start

    def _span_from(self, start: Position) -> Span:
        return Span(start, self._prev_end())

    def _consume_semicolon(self) -> None:
        """Consume ';' or accept an automatically inserted one."""
        if self._eat_punct(";"):
            return
        tok = self._peek()
        if tok.type == TokenType.EOF or tok.newline_before or self._at_punct("}"):
            return
        raise self._error("expected ';'")

    def _error(self, message: str, span: Span | None = None) -> ParseError:
        if span is None:
            tok = self._peek()
            span = tok.span
            if tok.type == TokenType.EOF:
                message = f"{message} (reached end of input)"
        return ParseError(message, span, self._source)

    # ------------------------------------------------------------------
    # Module level
    # ------------------------------------------------------------------

    def parse(self) -> Program:
        body: list[Statement] = []
        start = self._peek().span.start
        while not self._at_eof():
            body.append(self._parse_statement())
        end = self._peek().span.end
        return Program(tuple(body), Span(start, end))

    def parse_single_expression(self) -> Expression:
        expr = self._parse_expression()
        if not self._at_eof():
            raise self._error("unexpected token after expression")
        return expr

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def _parse_statement(self) -> Statement:
        tok = self._peek()
        start = tok.span.start

        if tok.type == TokenType.PUNCT:
            if tok.value == "{":
                return self._parse_block()
            if tok.value == ";":
                self._advance()
                return EmptyStatement(tok.span)

        if tok.type == TokenType.KEYWORD:
            kw = tok.value
            if kw in ("const", "let", "var"):
                decl = self._parse_variable_declaration()
                self._consume_semicolon()
                return VariableDeclaration(decl.kind, decl.declarations, self._span_from(start))
            if kw == "function":
                fn = self._parse_function(require_name=True)
                return FunctionDeclaration(fn, fn.span)
            if kw == "class":
                cls = self._parse_class(require_name=True)
                return ClassDeclaration(cls, cls.span)
            if kw == "return":
                return self._parse_return()
            if kw == "if":
                return self._parse_if()
            if kw == "for":
                return self._parse_for()
            if kw == "while":
                self._advance()
                self._expect_punct("(", "expected '(' after 'while'")
                test = self._parse_expression()
                self._expect_punct(")")
                body = self._parse_statement()
                return WhileStatement(test, body, self._span_from(start))
            if kw == "break":
                self._advance()
                self._consume_semicolon()
                return BreakStatement(self._span_from(start))
            if kw == "continue":
                self._advance()
                self._consume_semicolon()
                return ContinueStatement(self._span_from(start))
            if kw == "throw":
                self._advance()
                if self._peek().newline_before:
                    raise self._error("illegal newline after 'throw'")
                argument = self._parse_expression()
                self._consume_semicolon()
                return ThrowStatement(argument, self._span_from(start))
            if kw == "try":
                return self._parse_try()
            if kw == "switch":
                return self._parse_switch()
            if kw == "import":
                return self._parse_import()
            if kw == "export":
                return self._parse_export()
            if kw == "do":
                raise self._error("'do ... while' loops are not supported")

        if tok.type == TokenType.IDENTIFIER and self._at_type_declaration():
            self._skip_type_declaration()
            return EmptyStatement(self._span_from(start))

        expr = self._parse_expression()
        self._consume_semicolon()
        return ExpressionStatement(expr, self._span_from(start))

    def _parse_block(self) -> BlockStatement:
        start = self._expect_punct("{").span.start
        body: list[Statement] = []
        while not self._at_punct("}"):
            if self._at_eof():
                raise self._error("expected '}' to close block")
            body.append(self._parse_statement())
        self._advance()
        return BlockStatement(tuple(body), self._span_from(start))

    def _parse_variable_declaration(self) -> VariableDeclaration:
        start = self._peek().span.start
        kind = self._advance().value
        declarations: list[VariableDeclarator] = []
        while True:
            decl_start = self._peek().span.start
            target = self._parse_binding_target()
            self._skip_optional_annotation()
            init = None
            if self._eat_punct("="):
                init = self._parse_assignment()
            elif kind == "const" and not isinstance(target, Identifier):
                raise self._error("destructuring declaration requires an initializer")
            declarations.append(VariableDeclarator(target, init, self._span_from(decl_start)))
            if not self._eat_punct(","):
                break
        return VariableDeclaration(kind, tuple(declarations), self._span_from(start))

    def _parse_return(self) -> ReturnStatement:
        start = self._advance().span.start
        argument = None
        tok = self._peek()
        if not (
            tok.type == TokenType.EOF
            or tok.newline_before
            or self._at_punct(";", "}")
        ):
            argument = self._parse_expression()
        self._consume_semicolon()
        return ReturnStatement(argument, self._span_from(start))

    def _parse_if(self) -> IfStatement:
        start = self._advance().span.start
        self._expect_punct("(", "expected '(' after 'if'")
        test = self._parse_expression()
        self._expect_punct(")")
        consequent = self._parse_statement()
        alternate = None
        if self._at_keyword("else"):
            self._advance()
            alternate = self._parse_statement()
        return IfStatement(test, consequent, alternate, self._span_from(start))

    def _parse_for(self) -> ForStatement | ForOfStatement:
        start = self._advance().span.start
        self._expect_punct("(", "expected '(' after 'for'")

        init: VariableDeclaration | Expression | None = None
        if self._at_keyword("const", "let", "var"):
            decl_start = self._peek().span.start
            kind = self._peek().value
            saved = self._pos
            self._advance()
            target = self._parse_binding_target()
            each = self._for_each_kind()
            if each is not None:
                left = VariableDeclaration(
                    kind,
                    (VariableDeclarator(target, None, target.span),),
                    self._span_from(decl_start),
                )
                return self._parse_for_each(each, left, start)
            self._pos = saved
            init = self._parse_variable_declaration()
        elif self._at(TokenType.IDENTIFIER) and self._peek(1).value in ("of", "in"):
            name = self._advance()
            each = self._for_each_kind()
            if each is not None:
                return self._parse_for_each(each, Identifier(name.value, name.span), start)
            self._pos -= 1
            init = self._parse_expression()
        elif not self._at_punct(";"):
            init = self._parse_expression()

        self._expect_punct(";", "expected ';' in for loop")
        test = None if self._at_punct(";") else self._parse_expression()
        self._expect_punct(";", "expected ';' in for loop")
        update = None if self._at_punct(")") else self._parse_expression()
        self._expect_punct(")")
        body = self._parse_statement()
        return ForStatement(init, test, update, body, self._span_from(start))

    def _for_each_kind(self) -> str | None:
        if self._at_contextual("of"):
            self._advance()
            return "of"
        if self._at_keyword("in"):
            self._advance()
            return "in"
        return None

    def _parse_for_each(
        self, each: str, left: VariableDeclaration | Pattern, start: Position
    ) -> ForOfStatement:
        right = self._parse_assignment() if each == "of" else self._parse_expression()
        self._expect_punct(")")
        body = self._parse_statement()
        return ForOfStatement(each, left, right, body, self._span_from(start))

    def _parse_try(self) -> TryStatement:
        start = self._advance().span.start
        block = self._parse_block()
        param = None
        handler = None
        finalizer = None
        if self._at_keyword("catch"):
            self._advance()
            if self._eat_punct("("):
                param = self._parse_binding_target()
                self._skip_optional_annotation()
                self._expect_punct(")")
            handler = self._parse_block()
        if self._at_keyword("finally"):
            self._advance()
            finalizer = self._parse_block()
        if handler is None and finalizer is None:
            raise self._error("expected 'catch' or 'finally' after 'try' block")
        return TryStatement(block, param, handler, finalizer, self._span_from(start))

    def _parse_switch(self) -> SwitchStatement:
        start = self._advance().span.start
        self._expect_punct("(", "expected '(' after 'switch'")
        discriminant = self._parse_expression()
        self._expect_punct(")")
        self._expect_punct("{")
        cases: list[SwitchCase] = []
        while not self._eat_punct("}"):
            case_start = self._peek().span.start
            if self._at_keyword("case"):
                self._advance()
                test = self._parse_expression()
            elif self._at_keyword("default"):
                self._advance()
                test = None
            else:
                raise self._error("expected 'case' or 'default'")
            self._expect_punct(":")
            body: list[Statement] = []
            while not self._at_keyword("case", "default") and not self._at_punct("}"):
                if self._at_eof():
                    raise self._error("expected '}' to close switch")
                body.append(self._parse_statement())
            cases.append(SwitchCase(test, tuple(body), self._span_from(case_start)))
        return SwitchStatement(discriminant, tuple(cases), self._span_from(start))

    def _parse_import(self) -> ImportDeclaration:
        start = self._advance().span.start
        # Bindings are discarded, only the module specifier is kept
        while not self._at(TokenType.STRING):
            if self._at_eof() or self._at_punct(";"):
                raise self._error("expected module specifier in import")
            self._advance()
        source = self._advance().value
        self._consume_semicolon()
        return ImportDeclaration(source, self._span_from(start))

    def _parse_export(self) -> Statement:
        start = self._advance().span.start

        if self._at_keyword("default"):
            self._advance()
            declaration: FunctionDeclaration | ClassDeclaration | Expression
            if self._at_keyword("function"):
                fn = self._parse_function(require_name=False)
                declaration = fn if fn.name is None else FunctionDeclaration(fn, fn.span)
            elif self._at_keyword("class"):
                cls = self._parse_class(require_name=False)
                declaration = cls if cls.name is None else ClassDeclaration(cls, cls.span)
            else:
                declaration = self._parse_assignment()
                self._consume_semicolon()
            return ExportDefaultDeclaration(declaration, self._span_from(start))

        if self._at_punct("{"):
            self._advance()
            specifiers: list[ExportSpecifier] = []
            while not self._eat_punct("}"):
                spec_start = self._peek().span.start
                local = self._expect_name("expected exported name")
                exported = local
                if self._at_contextual("as"):
                    self._advance()
                    exported = self._expect_name("expected name after 'as'")
                specifiers.append(ExportSpecifier(local, exported, self._span_from(spec_start)))
                if not self._at_punct("}"):
                    self._expect_punct(",", "expected ',' or '}' in export list")
            if self._at_contextual("from"):
                # Re-exports refer to other modules and bind nothing here
                self._advance()
                self._expect(TokenType.STRING, "expected module specifier")
                self._consume_semicolon()
                return ExportNamedDeclaration(None, (), self._span_from(start))
            self._consume_semicolon()
            return ExportNamedDeclaration(None, tuple(specifiers), self._span_from(start))

        if self._at_punct("*"):
            while not self._at(TokenType.STRING):
                if self._at_eof():
                    raise self._error("expected module specifier in export")
                self._advance()
            self._advance()
            self._consume_semicolon()
            return ExportNamedDeclaration(None, (), self._span_from(start))

        if self._at(TokenType.IDENTIFIER) and self._at_type_declaration():
            self._skip_type_declaration()
            return EmptyStatement(self._span_from(start))

        if not self._at_keyword("const", "let", "var", "function", "class"):
            raise self._error("expected declaration after 'export'")
        declaration_stmt = self._parse_statement()
        return ExportNamedDeclaration(declaration_stmt, (), self._span_from(start))

    def _expect_name(self, message: str) -> str:
        tok = self._peek()
        if tok.type not in (TokenType.IDENTIFIER, TokenType.KEYWORD):
            raise self._error(message)
        self._advance()
        return tok.value

    # ------------------------------------------------------------------
    # Functions and classes
    # ------------------------------------------------------------------

    def _parse_function(self, require_name: bool) -> Function:
        start = self._advance().span.start  # consume 'function'
        if self._at_punct("*"):
            raise self._error("generator functions are not supported")
        name = None
        if self._at(TokenType.IDENTIFIER):
            name = self._advance().value
        elif require_name:
            raise self._error("expected function name")
        return self._parse_function_rest(name, start)

    def _parse_function_rest(self, name: str | None, start: Position) -> Function:
        if self._at_punct("<"):
            self._skip_type_arguments()
        params = self._parse_params()
        if self._eat_punct(":"):
            self._skip_type()
        body = self._parse_block()
        return Function(name, params, body, False, self._span_from(start))

    def _parse_params(self) -> tuple[Pattern, ...]:
        self._expect_punct("(", "expected '(' before parameters")
        params: list[Pattern] = []
        while not self._eat_punct(")"):
            if self._at_keyword("this") and self._peek(1).value == ":":
                # TypeScript `this` parameter
                self._advance()
                self._skip_optional_annotation()
            else:
                while self._at_modifier():
                    self._advance()
                if self._at_punct("..."):
                    rest_start = self._advance().span.start
                    argument = self._parse_binding_target()
                    self._skip_optional_annotation()
                    params.append(RestElement(argument, self._span_from(rest_start)))
                else:
                    params.append(self._parse_binding_element())
            if not self._at_punct(")"):
                self._expect_punct(",", "expected ',' or ')' in parameter list")
        return tuple(params)

    def _parse_arrow_body(self, params: tuple[Pattern, ...], start: Position) -> Function:
        arrow = self._expect_punct("=>")
        if arrow.newline_before:
            raise self._error("line terminator before '=>'", arrow.span)
        body: BlockStatement | Expression
        if self._at_punct("{"):
            body = self._parse_block()
        else:
            body = self._parse_assignment()
        return Function(None, params, body, True, self._span_from(start))

    def _parse_class(self, require_name: bool) -> Class:
        start = self._advance().span.start  # consume 'class'
        name = None
        if self._at(TokenType.IDENTIFIER) and not self._at_contextual("implements"):
            name = self._advance().value
        elif require_name:
            raise self._error("expected class name")
        if self._at_punct("<"):
            self._skip_type_arguments()
        superclass = None
        if self._at_keyword("extends"):
            self._advance()
            superclass = self._parse_call_member(allow_calls=False)
            if self._at_punct("<"):
                self._skip_type_arguments()
        if self._at_contextual("implements"):
            self._advance()
            self._skip_type()
            while self._eat_punct(","):
                self._skip_type()

        self._expect_punct("{", "expected '{' to open class body")
        members: list[ClassMember] = []
        while not self._eat_punct("}"):
            if self._at_eof():
                raise self._error("expected '}' to close class body")
            if self._eat_punct(";"):
                continue
            members.append(self._parse_class_member())
        return Class(name, superclass, tuple(members), self._span_from(start))

    def _parse_class_member(self) -> ClassMember:
        start = self._peek().span.start
        static = False
        while True:
            if self._at_contextual("static") and self._peek(1).value not in ("(", "="):
                self._advance()
                static = True
            elif self._at_modifier():
                self._advance()
            else:
                break

        tok = self._peek()
        if tok.type in (TokenType.IDENTIFIER, TokenType.KEYWORD, TokenType.STRING):
            name = tok.value
        elif tok.type == TokenType.NUMBER:
            name = _number_to_key(tok.value)
        else:
            raise self._error("expected class member name")
        if tok.value in ("get", "set", "async") and tok.type == TokenType.IDENTIFIER:
            nxt = self._peek(1)
            if nxt.type in (TokenType.IDENTIFIER, TokenType.KEYWORD, TokenType.STRING):
                raise self._error(f"'{tok.value}' class members are not supported")
        self._advance()
        self._eat_punct("?")
        self._eat_punct("!")

        if self._at_punct("(", "<"):
            fn = self._parse_function_rest(name, start)
            kind = "constructor" if name == "constructor" and not static else "method"
            return ClassMember(name, fn, kind, static, self._span_from(start))

        self._skip_optional_annotation()
        value = None
        if self._eat_punct("="):
            value = self._parse_assignment()
        self._consume_semicolon()
        return ClassMember(name, value, "field", static, self._span_from(start))

    def _at_modifier(self) -> bool:
        tok = self._peek()
        nxt = self._peek(1)
        return (
            tok.type == TokenType.IDENTIFIER
            and tok.value in _TS_MODIFIERS
            and nxt.type in (TokenType.IDENTIFIER, TokenType.KEYWORD, TokenType.STRING)
            and not nxt.newline_before
        ) or (
            tok.type == TokenType.IDENTIFIER
            and tok.value in _TS_MODIFIERS
            and nxt.type == TokenType.PUNCT
            and nxt.value in ("{", "[", "...")
        )

    # ------------------------------------------------------------------
    # Binding patterns
    # ------------------------------------------------------------------

    def _parse_binding_target(self) -> Pattern:
        tok = self._peek()
        if tok.type == TokenType.IDENTIFIER:
            self._advance()
            return Identifier(tok.value, tok.span)
        if self._at_punct("["):
            return self._parse_array_pattern()
        if self._at_punct("{"):
            return self._parse_object_pattern()
        raise self._error("expected binding name or pattern")

    def _parse_binding_element(self) -> Pattern:
        start = self._peek().span.start
        target = self._parse_binding_target()
        self._eat_punct("?")
        self._skip_optional_annotation()
        if self._eat_punct("="):
            default = self._parse_assignment()
            return AssignmentPattern(target, default, self._span_from(start))
        return target

    def _parse_array_pattern(self) -> ArrayPattern:
        start = self._advance().span.start
        elements: list[Pattern | None] = []
        while not self._eat_punct("]"):
            if self._at_punct(","):
                self._advance()
                elements.append(None)
                continue
            if self._at_punct("..."):
                rest_start = self._advance().span.start
                argument = self._parse_binding_target()
                elements.append(RestElement(argument, self._span_from(rest_start)))
            else:
                elements.append(self._parse_binding_element_plain())
            if not self._at_punct("]"):
                self._expect_punct(",", "expected ',' or ']' in array pattern")
        return ArrayPattern(tuple(elements), self._span_from(start))

    def _parse_binding_element_plain(self) -> Pattern:
        start = self._peek().span.start
        target = self._parse_binding_target()
        if self._eat_punct("="):
            default = self._parse_assignment()
            return AssignmentPattern(target, default, self._span_from(start))
        return target

    def _parse_object_pattern(self) -> ObjectPattern:
        start = self._advance().span.start
        properties: list[PatternProperty | RestElement] = []
        while not self._eat_punct("}"):
            prop_start = self._peek().span.start
            if self._at_punct("..."):
                self._advance()
                argument = self._parse_binding_target()
                properties.append(RestElement(argument, self._span_from(prop_start)))
            else:
                key, computed = self._parse_property_key()
                if self._eat_punct(":"):
                    value = self._parse_binding_element_plain()
                else:
                    if computed or not isinstance(key, Identifier):
                        raise self._error("expected ':' after property key in pattern")
                    value = key
                    if self._eat_punct("="):
                        default = self._parse_assignment()
                        value = AssignmentPattern(key, default, self._span_from(prop_start))
                properties.append(
                    PatternProperty(key, value, computed, self._span_from(prop_start))
                )
            if not self._at_punct("}"):
                self._expect_punct(",", "expected ',' or '}' in object pattern")
        return ObjectPattern(tuple(properties), self._span_from(start))

    def _parse_property_key(self) -> tuple[Expression, bool]:
        tok = self._peek()
        if tok.type in (TokenType.IDENTIFIER, TokenType.KEYWORD):
            self._advance()
            return Identifier(tok.value, tok.span), False
        if tok.type == TokenType.STRING:
            self._advance()
            return Literal(tok.value, tok.raw, tok.span), False
        if tok.type == TokenType.NUMBER:
            self._advance()
            return Literal(_number_to_key(tok.value), tok.raw, tok.span), False
        if self._at_punct("["):
            self._advance()
            key = self._parse_assignment()
            self._expect_punct("]")
            return key, True
        raise self._error("expected property name")

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def _parse_expression(self) -> Expression:
        start = self._peek().span.start
        expr = self._parse_assignment()
        if not self._at_punct(","):
            return expr
        expressions = [expr]
        while self._eat_punct(","):
            expressions.append(self._parse_assignment())
        return SequenceExpression(tuple(expressions), self._span_from(start))

    def _parse_assignment(self) -> Expression:
        tok = self._peek()
        start = tok.span.start

        # Arrow functions
        if tok.type == TokenType.IDENTIFIER and self._peek(1).type == TokenType.PUNCT:
            if self._peek(1).value == "=>":
                self._advance()
                return self._parse_arrow_body((Identifier(tok.value, tok.span),), start)
        if self._at_punct("(") and self._is_arrow_ahead():
            params = self._parse_params()
            if self._eat_punct(":"):
                self._skip_type()
            return self._parse_arrow_body(params, start)
        if tok.type == TokenType.IDENTIFIER and tok.value == "async":
            nxt = self._peek(1)
            if not nxt.newline_before and (
                (nxt.type == TokenType.KEYWORD and nxt.value == "function")
                or nxt.type == TokenType.IDENTIFIER
                or (nxt.value == "(" and self._is_arrow_ahead(1))
            ):
                raise self._error("async functions are not supported")

        left = self._parse_conditional()

        op_tok = self._peek()
        if op_tok.type == TokenType.PUNCT and op_tok.value in _ASSIGNMENT_OPERATORS:
            if op_tok.value == "=":
                target = self._to_pattern(left)
            elif isinstance(left, (Identifier, MemberExpression)):
                target = left
            else:
                raise self._error("invalid assignment target", left.span)
            self._advance()
            value = self._parse_assignment()
            return AssignmentExpression(op_tok.value, target, value, self._span_from(start))
        return left

    def _is_arrow_ahead(self, offset: int = 0) -> bool:
        """Look past the parenthesised group at the cursor for '=>'."""
        idx = self._pos + offset
        depth = 0
        while idx < len(self._tokens):
            tok = self._tokens[idx]
            if tok.type == TokenType.EOF:
                return False
            if tok.type == TokenType.PUNCT:
                if tok.value in ("(", "[", "{"):
                    depth += 1
                elif tok.value in (")", "]", "}"):
                    depth -= 1
                    if depth == 0:
                        break
            idx += 1
        else:
            return False
        nxt = self._tokens[idx + 1] if idx + 1 < len(self._tokens) else None
        if nxt is None or nxt.type != TokenType.PUNCT:
            return False
        if nxt.value == "=>":
            return True
        if nxt.value != ":":
            return False
        # `(a): T => ...` versus `cond ? (a) : b`
        saved = self._pos
        try:
            self._pos = idx + 2
            self._skip_type()
            return self._at_punct("=>")
        except ParseError:
            return False
        finally:
            self._pos = saved

    def _to_pattern(self, expr: Expression) -> Pattern:
        """Reinterpret an assignment target expression as a binding pattern."""
        if isinstance(expr, (Identifier, MemberExpression)):
            return expr
        if isinstance(expr, ArrayExpression):
            elements: list[Pattern | None] = []
            for element in expr.elements:
                if element is None:
                    elements.append(None)
                elif isinstance(element, SpreadElement):
                    elements.append(RestElement(self._to_pattern(element.argument), element.span))
                else:
                    elements.append(self._to_pattern(element))
            return ArrayPattern(tuple(elements), expr.span)
        if isinstance(expr, ObjectExpression):
            properties: list[PatternProperty | RestElement] = []
            for prop in expr.properties:
                if isinstance(prop, SpreadElement):
                    properties.append(RestElement(self._to_pattern(prop.argument), prop.span))
                else:
                    value = self._to_pattern(prop.value)
                    properties.append(PatternProperty(prop.key, value, prop.computed, prop.span))
            return ObjectPattern(tuple(properties), expr.span)
        if isinstance(expr, AssignmentExpression) and expr.operator == "=":
            return AssignmentPattern(expr.target, expr.value, expr.span)
        raise self._error("invalid assignment target", expr.span)

    def _parse_conditional(self) -> Expression:
        start = self._peek().span.start
        test = self._parse_binary(0)
        if not self._eat_punct("?"):
            return test
        consequent = self._parse_assignment()
        self._expect_punct(":", "expected ':' in conditional expression")
        alternate = self._parse_assignment()
        return ConditionalExpression(test, consequent, alternate, self._span_from(start))

    def _parse_binary(self, min_prec: int) -> Expression:
        left = self._parse_unary()
        while True:
            tok = self._peek()
            if (
                tok.type == TokenType.IDENTIFIER
                and tok.value in ("as", "satisfies")
                and not tok.newline_before
            ):
                self._advance()
                self._skip_type()
                continue
            op = _binary_operator(tok)
            if op is None:
                break
            prec = _PRECEDENCE[op]
            if prec <= min_prec:
                break
            self._advance()
            right = self._parse_binary(prec - 1 if op == "**" else prec)
            span = Span(left.span.start, right.span.end)
            if op in ("&&", "||", "??"):
                left = LogicalExpression(op, left, right, span)
            else:
                left = BinaryExpression(op, left, right, span)
        return left

    def _parse_unary(self) -> Expression:
        tok = self._peek()
        start = tok.span.start
        if (tok.type == TokenType.PUNCT and tok.value in ("!", "-", "+", "~")) or (
            tok.type == TokenType.KEYWORD and tok.value in ("typeof", "void", "delete")
        ):
            self._advance()
            argument = self._parse_unary()
            return UnaryExpression(tok.value, argument, self._span_from(start))
        if tok.type == TokenType.PUNCT and tok.value in ("++", "--"):
            self._advance()
            argument = self._parse_unary()
            if not isinstance(argument, (Identifier, MemberExpression)):
                raise self._error("invalid update target", argument.span)
            return UpdateExpression(tok.value, True, argument, self._span_from(start))

        expr = self._parse_call_member()
        nxt = self._peek()
        if nxt.type == TokenType.PUNCT and nxt.value in ("++", "--") and not nxt.newline_before:
            if not isinstance(expr, (Identifier, MemberExpression)):
                raise self._error("invalid update target", expr.span)
            self._advance()
            return UpdateExpression(nxt.value, False, expr, self._span_from(start))
        return expr

    def _parse_call_member(self, allow_calls: bool = True) -> Expression:
        start = self._peek().span.start
        if self._at_keyword("new"):
            expr = self._parse_new()
        else:
            expr = self._parse_primary()

        in_chain = False
        while True:
            tok = self._peek()
            if tok.type == TokenType.TEMPLATE_START:
                raise self._error("tagged templates are not supported")
            if tok.type != TokenType.PUNCT:
                break
            if tok.value == ".":
                self._advance()
                prop = self._expect_property_name()
                expr = MemberExpression(expr, prop, False, False, self._span_from(start))
            elif tok.value == "?.":
                self._advance()
                in_chain = True
                if self._at_punct("("):
                    args = self._parse_arguments()
                    expr = CallExpression(expr, args, True, self._span_from(start))
                elif self._eat_punct("["):
                    prop_expr = self._parse_expression()
                    self._expect_punct("]")
                    expr = MemberExpression(expr, prop_expr, True, True, self._span_from(start))
                else:
                    prop = self._expect_property_name()
                    expr = MemberExpression(expr, prop, False, True, self._span_from(start))
            elif tok.value == "[":
                self._advance()
                prop_expr = self._parse_expression()
                self._expect_punct("]")
                expr = MemberExpression(expr, prop_expr, True, False, self._span_from(start))
            elif tok.value == "(" and allow_calls:
                args = self._parse_arguments()
                expr = CallExpression(expr, args, False, self._span_from(start))
            elif tok.value == "<" and allow_calls and self._try_type_arguments_before_call():
                continue
            elif tok.value == "!" and not tok.newline_before and self._peek(1).value != "=":
                # TypeScript non-null assertion
                self._advance()
            else:
                break

        if in_chain:
            return ChainExpression(expr, self._span_from(start))
        return expr

    def _parse_new(self) -> Expression:
        start = self._advance().span.start  # consume 'new'
        if self._at_keyword("new"):
            callee = self._parse_new()
        else:
            callee = self._parse_primary()
        while True:
            if self._eat_punct("."):
                prop = self._expect_property_name()
                callee = MemberExpression(callee, prop, False, False, self._span_from(start))
            elif self._eat_punct("["):
                prop_expr = self._parse_expression()
                self._expect_punct("]")
                callee = MemberExpression(callee, prop_expr, True, False, self._span_from(start))
            else:
                break
        if self._at_punct("<"):
            self._try_type_arguments_before_call()
        args: tuple[Expression | SpreadElement, ...] = ()
        if self._at_punct("("):
            args = self._parse_arguments()
        return NewExpression(callee, args, self._span_from(start))

    def _expect_property_name(self) -> Identifier:
        tok = self._peek()
        if tok.type not in (TokenType.IDENTIFIER, TokenType.KEYWORD):
            raise self._error("expected property name after '.'")
        self._advance()
        return Identifier(tok.value, tok.span)

    def _parse_arguments(self) -> tuple[Expression | SpreadElement, ...]:
        self._expect_punct("(")
        args: list[Expression | SpreadElement] = []
        while not self._eat_punct(")"):
            if self._at_punct("..."):
                spread_start = self._advance().span.start
                argument = self._parse_assignment()
                args.append(SpreadElement(argument, self._span_from(spread_start)))
            else:
                args.append(self._parse_assignment())
            if not self._at_punct(")"):
                self._expect_punct(",", "expected ',' or ')' in argument list")
        return tuple(args)

    def _parse_primary(self) -> Expression:
        tok = self._peek()
        start = tok.span.start

        if tok.type == TokenType.IDENTIFIER:
            self._advance()
            return Identifier(tok.value, tok.span)

        if tok.type == TokenType.NUMBER:
            self._advance()
            return Literal(_number_value(tok.value), tok.raw, tok.span)

        if tok.type == TokenType.STRING:
            self._advance()
            return Literal(tok.value, tok.raw, tok.span)

        if tok.type == TokenType.TEMPLATE_START:
            return self._parse_template()

        if tok.type == TokenType.JSX_TAG_OPEN:
            return self._parse_jsx()

        if tok.type == TokenType.KEYWORD:
            if tok.value in ("true", "false"):
                self._advance()
                return Literal(tok.value == "true", tok.raw, tok.span)
            if tok.value == "null":
                self._advance()
                return Literal(None, tok.raw, tok.span)
            if tok.value == "this":
                self._advance()
                return ThisExpression(tok.span)
            if tok.value == "super":
                self._advance()
                if not self._at_punct("(", ".", "["):
                    raise self._error("'super' must be called or accessed")
                return Super(tok.span)
            if tok.value == "function":
                return self._parse_function(require_name=False)
            if tok.value == "class":
                return self._parse_class(require_name=False)

        if tok.type == TokenType.PUNCT:
            if tok.value == "(":
                self._advance()
                expr = self._parse_expression()
                self._expect_punct(")", "expected ')' to close parenthesised expression")
                return expr
            if tok.value == "[":
                return self._parse_array()
            if tok.value == "{":
                return self._parse_object()

        if tok.type == TokenType.EOF:
            raise self._error("unexpected end of input", tok.span)
        raise self._error(f"unexpected token '{tok.raw}'", Span(start, tok.span.end))

    def _parse_template(self) -> TemplateLiteral:
        start = self._advance().span.start  # consume TEMPLATE_START
        quasis: list[str] = []
        expressions: list[Expression] = []
        while True:
            chunk = self._expect(TokenType.TEMPLATE_CHUNK, "malformed template literal")
            quasis.append(chunk.value)
            if self._at(TokenType.TEMPLATE_END):
                self._advance()
                break
            self._expect(TokenType.TEMPLATE_EXPR_OPEN, "malformed template literal")
            expressions.append(self._parse_expression())
            self._expect(TokenType.TEMPLATE_EXPR_CLOSE, "expected '}' to close substitution")
        return TemplateLiteral(tuple(quasis), tuple(expressions), self._span_from(start))

    def _parse_array(self) -> ArrayExpression:
        start = self._advance().span.start
        elements: list[Expression | SpreadElement | None] = []
        while not self._eat_punct("]"):
            if self._at_punct(","):
                self._advance()
                elements.append(None)
                continue
            if self._at_punct("..."):
                spread_start = self._advance().span.start
                argument = self._parse_assignment()
                elements.append(SpreadElement(argument, self._span_from(spread_start)))
            else:
                elements.append(self._parse_assignment())
            if not self._at_punct("]"):
                self._expect_punct(",", "expected ',' or ']' in array literal")
        return ArrayExpression(tuple(elements), self._span_from(start))

    def _parse_object(self) -> ObjectExpression:
        start = self._advance().span.start
        properties: list[Property | SpreadElement] = []
        while not self._eat_punct("}"):
            prop_start = self._peek().span.start
            if self._at_punct("..."):
                self._advance()
                argument = self._parse_assignment()
                properties.append(SpreadElement(argument, self._span_from(prop_start)))
            else:
                tok = self._peek()
                if (
                    tok.type == TokenType.IDENTIFIER
                    and tok.value in ("get", "set", "async")
                    and self._peek(1).type
                    in (TokenType.IDENTIFIER, TokenType.KEYWORD, TokenType.STRING)
                ):
                    raise self._error(f"'{tok.value}' object members are not supported")
                key, computed = self._parse_property_key()
                if self._eat_punct(":"):
                    value = self._parse_assignment()
                    properties.append(
                        Property(key, value, computed, False, self._span_from(prop_start))
                    )
                elif self._at_punct("(", "<"):
                    name = key.name if isinstance(key, Identifier) else None
                    fn = self._parse_function_rest(name, prop_start)
                    properties.append(
                        Property(key, fn, computed, False, self._span_from(prop_start))
                    )
                else:
                    shorthand = not computed and isinstance(key, Identifier)
                    if not shorthand or tok.type != TokenType.IDENTIFIER:
                        raise self._error("expected ':' after property key")
                    value = Identifier(key.name, key.span)
                    if self._at_punct("="):
                        # Only meaningful as a destructuring default: ({a = 1} = obj)
                        self._advance()
                        default = self._parse_assignment()
                        value = AssignmentExpression(
                            "=", key, default, self._span_from(prop_start)
                        )
                    properties.append(
                        Property(key, value, False, True, self._span_from(prop_start))
                    )
            if not self._at_punct("}"):
                self._expect_punct(",", "expected ',' or '}' in object literal")
        return ObjectExpression(tuple(properties), self._span_from(start))

    # ------------------------------------------------------------------
    # Markup
    # ------------------------------------------------------------------

    def _parse_jsx(self) -> JSXElement | JSXFragment:
        open_tok = self._expect(TokenType.JSX_TAG_OPEN, "expected '<'")
        start = open_tok.span.start

        if self._at(TokenType.JSX_TAG_END):
            self._advance()
            opening_span = self._span_from(start)
            children = self._parse_jsx_children()
            self._expect(TokenType.JSX_CLOSE_TAG_OPEN, "expected '</>' to close fragment")
            if self._at(TokenType.JSX_NAME):
                raise self._error("expected '</>' to close fragment")
            self._expect(TokenType.JSX_TAG_END, "expected '>' in closing fragment")
            return JSXFragment(children, opening_span, self._span_from(start))

        name_tok = self._expect(TokenType.JSX_NAME, "expected tag name after '<'")
        attributes: list[JSXAttribute | JSXSpreadAttribute] = []
        while True:
            if self._at(TokenType.JSX_NAME):
                attributes.append(self._parse_jsx_attribute())
            elif self._at(TokenType.JSX_EXPR_OPEN):
                attr_start = self._advance().span.start
                self._expect_punct("...", "expected '...' in spread attribute")
                argument = self._parse_assignment()
                self._expect(TokenType.JSX_EXPR_CLOSE, "expected '}' after spread attribute")
                attributes.append(JSXSpreadAttribute(argument, self._span_from(attr_start)))
            else:
                break

        if self._at(TokenType.JSX_SELF_CLOSE):
            self._advance()
            span = self._span_from(start)
            return JSXElement(
                name_tok.value, name_tok.span, tuple(attributes), (), True, span, span
            )

        self._expect(TokenType.JSX_TAG_END, "expected '>' or '/>' to end tag")
        opening_span = self._span_from(start)
        children = self._parse_jsx_children()
        self._expect(TokenType.JSX_CLOSE_TAG_OPEN, f"expected closing tag </{name_tok.value}>")
        close_name = self._expect(TokenType.JSX_NAME, f"expected closing tag </{name_tok.value}>")
        if close_name.value != name_tok.value:
            raise self._error(
                f"expected corresponding closing tag for <{name_tok.value}>", close_name.span
            )
        self._expect(TokenType.JSX_TAG_END, "expected '>' in closing tag")
        return JSXElement(
            name_tok.value,
            name_tok.span,
            tuple(attributes),
            children,
            False,
            opening_span,
            self._span_from(start),
        )

    def _parse_jsx_attribute(self) -> JSXAttribute:
        name_tok = self._advance()
        start = name_tok.span.start
        if not self._at(TokenType.JSX_EQUALS):
            return JSXAttribute(name_tok.value, None, name_tok.span, name_tok.span)
        self._advance()

        tok = self._peek()
        value: Literal | JSXExpressionContainer | JSXElement | JSXFragment
        if tok.type == TokenType.JSX_ATTR_STRING:
            self._advance()
            value = Literal(tok.value, tok.raw, tok.span)
        elif tok.type == TokenType.JSX_EXPR_OPEN:
            self._advance()
            if self._at(TokenType.JSX_EXPR_CLOSE):
                raise self._error("JSX attributes must only be assigned a non-empty expression")
            expr = self._parse_assignment()
            self._expect(TokenType.JSX_EXPR_CLOSE, "expected '}' after attribute expression")
            value = JSXExpressionContainer(expr, self._span_from(tok.span.start))
        elif tok.type == TokenType.JSX_TAG_OPEN:
            value = self._parse_jsx()
        else:
            raise self._error("expected attribute value after '='")
        return JSXAttribute(name_tok.value, value, name_tok.span, self._span_from(start))

    def _parse_jsx_children(self) -> tuple[JSXChild, ...]:
        children: list[JSXChild] = []
        while not self._at(TokenType.JSX_CLOSE_TAG_OPEN):
            tok = self._peek()
            if tok.type == TokenType.JSX_TEXT:
                self._advance()
                children.append(JSXText(tok.value, tok.raw, tok.span))
            elif tok.type == TokenType.JSX_EXPR_OPEN:
                self._advance()
                if self._at(TokenType.JSX_EXPR_CLOSE):
                    self._advance()
                    children.append(JSXExpressionContainer(None, self._span_from(tok.span.start)))
                    continue
                if self._at_punct("..."):
                    raise self._error("spread children are not supported")
                expr = self._parse_expression()
                self._expect(TokenType.JSX_EXPR_CLOSE, "expected '}' to close JSX expression")
                children.append(JSXExpressionContainer(expr, self._span_from(tok.span.start)))
            elif tok.type == TokenType.JSX_TAG_OPEN:
                children.append(self._parse_jsx())
            else:
                raise self._error("unterminated JSX element")
        return tuple(children)

    # ------------------------------------------------------------------
    # Type annotations (skipped)
    # ------------------------------------------------------------------

    def _skip_optional_annotation(self) -> None:
        if self._eat_punct(":"):
            self._skip_type()

    def _skip_type(self) -> None:
        if not self._eat_punct("|"):
            self._eat_punct("&")
        self._skip_type_operand()
        while self._at_punct("|", "&"):
            self._advance()
            self._skip_type_operand()
        if self._at_keyword("extends") and not self._peek().newline_before:
            # Conditional type: A extends B ? C : D
            self._advance()
            self._skip_type_operand()
            self._expect_punct("?")
            self._skip_type()
            self._expect_punct(":")
            self._skip_type()

    def _skip_type_operand(self) -> None:
        tok = self._peek()
        if tok.type == TokenType.PUNCT and tok.value == "(":
            self._skip_balanced("(", ")")
            if self._eat_punct("=>"):
                self._skip_type()
            return
        if tok.type == TokenType.PUNCT and tok.value == "{":
            self._skip_balanced("{", "}")
        elif tok.type == TokenType.PUNCT and tok.value == "[":
            self._skip_balanced("[", "]")
        elif tok.type == TokenType.PUNCT and tok.value == "-":
            self._advance()
            self._expect(TokenType.NUMBER, "expected type")
        elif tok.type == TokenType.KEYWORD and tok.value in ("typeof", "new"):
            self._advance()
            self._skip_type_operand()
            return
        elif tok.type == TokenType.IDENTIFIER and tok.value in _TYPE_OPERATORS:
            self._advance()
            self._skip_type_operand()
            return
        elif tok.type in (TokenType.IDENTIFIER, TokenType.STRING, TokenType.NUMBER) or (
            tok.type == TokenType.KEYWORD
            and tok.value in ("null", "void", "this", "true", "false", "const", "undefined")
        ):
            self._advance()
            while self._at_punct(".") and self._peek(1).type in (
                TokenType.IDENTIFIER,
                TokenType.KEYWORD,
            ):
                self._advance()
                self._advance()
            if self._at_punct("<") and not self._peek().newline_before:
                self._skip_type_arguments()
        elif tok.type == TokenType.TEMPLATE_START:
            while not self._at(TokenType.TEMPLATE_END):
                if self._at_eof():
                    raise self._error("unterminated template type")
                self._advance()
            self._advance()
        else:
            raise self._error("expected type")

        # Array and indexed access types
        while self._at_punct("[") and not self._peek().newline_before:
            self._skip_balanced("[", "]")

    def _skip_balanced(self, open_: str, close: str) -> None:
        depth = 0
        while True:
            tok = self._peek()
            if tok.type == TokenType.EOF:
                raise self._error(f"expected '{close}'")
            self._advance()
            if tok.type == TokenType.PUNCT and tok.value == open_:
                depth += 1
            elif tok.type == TokenType.PUNCT and tok.value == close:
                depth -= 1
                if depth == 0:
                    return

    def _skip_type_arguments(self) -> None:
        """Skip a ``<...>`` group, splitting '>>' and '>>>' as needed."""
        depth = 0
        while True:
            tok = self._peek()
            if tok.type != TokenType.PUNCT and tok.type not in _TYPE_ARGUMENT_TOKENS:
                raise self._error("expected '>' to close type arguments")
            if tok.type == TokenType.PUNCT:
                if tok.value not in _TYPE_ARGUMENT_PUNCT:
                    raise self._error("expected '>' to close type arguments")
                self._advance()
                if tok.value == "<":
                    depth += 1
                elif tok.value in (">", ">>", ">>>"):
                    depth -= len(tok.value)
                    if depth <= 0:
                        return
            else:
                self._advance()

    def _try_type_arguments_before_call(self) -> bool:
        """Skip ``<T>`` when it is followed by a call's '(' and report success."""
        saved = self._pos
        try:
            self._skip_type_arguments()
        except ParseError:
            self._pos = saved
            return False
        if self._at_punct("("):
            return True
        self._pos = saved
        return False

    def _at_type_declaration(self) -> bool:
        tok = self._peek()
        nxt = self._peek(1)
        if tok.value in ("type", "interface"):
            return nxt.type == TokenType.IDENTIFIER and not nxt.newline_before
        if tok.value == "declare":
            return not nxt.newline_before and nxt.type in (TokenType.IDENTIFIER, TokenType.KEYWORD)
        return False

    def _skip_type_declaration(self) -> None:
        keyword = self._advance().value
        if keyword == "declare":
            # Ambient declarations describe values defined elsewhere
            while not self._at_eof() and not self._at_punct(";", "{"):
                if self._peek().newline_before and self._pos > 0:
                    return
                self._advance()
            if self._at_punct("{"):
                self._skip_balanced("{", "}")
            self._eat_punct(";")
            return
        self._advance()  # name
        if self._at_punct("<"):
            self._skip_type_arguments()
        if keyword == "interface":
            while not self._at_punct("{"):
                if self._at_eof():
                    raise self._error("expected '{' in interface declaration")
                self._advance()
            self._skip_balanced("{", "}")
            return
        self._expect_punct("=", "expected '=' in type alias")
        self._skip_type()
        self._consume_semicolon()


# Module-level constants
_PRECEDENCE: dict[str, int] = {
    "??": 1,
    "||": 2,
    "&&": 3,
    "|": 4,
    "^": 5,
    "&": 6,
    "==": 7,
    "!=": 7,
    "===": 7,
    "!==": 7,
    "<": 8,
    ">": 8,
    "<=": 8,
    ">=": 8,
    "instanceof": 8,
    "in": 8,
    "<<": 9,
    ">>": 9,
    ">>>": 9,
    "+": 10,
    "-": 10,
    "*": 11,
    "/": 11,
    "%": 11,
    "**": 12,
}
_ASSIGNMENT_OPERATORS: frozenset[str] = frozenset(
    {"=", "+=", "-=", "*=", "/=", "%=", "**=", "<<=", ">>=", ">>>=", "&=", "|=", "^=",
     "&&=", "||=", "??="}
)
_TS_MODIFIERS: frozenset[str] = frozenset(
    {"public", "private", "protected", "readonly", "override", "abstract", "declare"}
)
_TYPE_OPERATORS: frozenset[str] = frozenset({"keyof", "readonly", "unique", "infer"})
_TYPE_ARGUMENT_TOKENS: frozenset[TokenType] = frozenset(
    {TokenType.IDENTIFIER, TokenType.KEYWORD, TokenType.STRING, TokenType.NUMBER}
)
_TYPE_ARGUMENT_PUNCT: frozenset[str] = frozenset(
    {"<", ">", ">>", ">>>", ",", ".", "|", "&", "[", "]", "{", "}", "(", ")", ":", ";", "?",
     "=>"}
)


def _binary_operator(tok: Token) -> str | None:
    if tok.type == TokenType.PUNCT and tok.value in _PRECEDENCE:
        return tok.value
    if tok.type == TokenType.KEYWORD and tok.value in ("instanceof", "in"):
        return tok.value
    return None


def _number_value(text: str) -> int | float:
    value = float(text)
    if value.is_integer() and abs(value) < 2**53:
        return int(value)
    return value


def _number_to_key(text: str) -> str:
    value = _number_value(text)
    return str(value)


def parse(source: str, filename: str = "component.jsx") -> Program:
    """Convenience function: parse source text and return a Program AST."""
    tokens = tokenize(source, filename)
    return Parser(tokens, source, filename).parse()


def parse_expression(source: str, filename: str = "component.jsx") -> Expression:
    """Parse source consisting of exactly one expression."""
    tokens = tokenize(source, filename)
    return Parser(tokens, source, filename).parse_single_expression()
