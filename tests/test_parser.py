from crtz.domain.actions import (
    EndAction,
    GotoAction,
    IfAction,
    MethodCallStmt,
    NewStmt,
    PrintStmt,
    SetAction,
    ShowAction,
    SignalAction,
    UnknownStmt,
)
from crtz.language.parser import classify_statement, parse_source
from crtz.language.lexer import tokenize

_PROGRAM = """
npc "Bob";
desc "Shopkeeper";
int gold = 2 + 3;
string city = "Varn";
match ready = true;
match flag = 1;

class Guard {
    int health = 10;
    void hit(int amount, int extra) {
        set health = health - amount;
    }
}

new Guard g;

node start {
    line "Hi";
    choice 1: "Go" -> next;
    choice 2: "Stay" -> start;
}

node next {
    end;
}
"""


def _messages(source: str) -> list[str]:
    return [diagnostic.message for diagnostic in parse_source(source).diagnostics]


def test_parse_globals_and_header() -> None:
    result = parse_source(_PROGRAM)
    program = result.program
    assert result.diagnostics == []
    assert program.npc == "Bob"
    assert program.desc == "Shopkeeper"
    assert program.int_vars == {"gold": 5}
    assert program.string_vars == {"city": "Varn"}
    assert program.bool_vars == {"ready": True, "flag": True}


def test_parse_classes_and_instances() -> None:
    program = parse_source(_PROGRAM).program
    guard = program.classes["Guard"]
    assert guard.fields == {"health": 10}
    assert guard.method_params["hit"] == ["amount", "extra"]
    assert isinstance(guard.methods["hit"][0], SetAction)
    assert program.objects == {"g": {"health": 10}}
    assert program.instance_classes == {"g": "Guard"}


def test_parse_nodes_and_entry() -> None:
    program = parse_source(_PROGRAM).program
    assert program.entry == "start"
    start = program.nodes["start"]
    assert start.text == "Hi"
    assert [(choice.id, choice.text, choice.target) for choice in start.choices] == [
        (1, "Go", "next"),
        (2, "Stay", "start"),
    ]
    assert start.line == 18
    assert isinstance(program.nodes["next"].actions[0], EndAction)


def test_declarations_without_initializer_default() -> None:
    program = parse_source("int a; string s; match m;").program
    assert program.int_vars == {"a": 0}
    assert program.string_vars == {"s": ""}
    assert program.bool_vars == {"m": False}


def test_initializer_sees_earlier_globals() -> None:
    program = parse_source("int a = 4; int b = a * 2;").program
    assert program.int_vars["b"] == 8


def test_node_statements_become_tagged_actions() -> None:
    source = """
    node n {
        set g.health = 3;
        set x = x + 1;
        signal alarm = 4;
        show "a", "b ${x}";
        if (x > (1)) goto yes else goto no;
        if (x) goto yes;
        goto yes;
        end;
    }
    """
    result = parse_source(source)
    assert result.diagnostics == []
    actions = result.program.nodes["n"].actions
    assert [type(action) for action in actions] == [
        SetAction,
        SetAction,
        SignalAction,
        ShowAction,
        ShowAction,
        IfAction,
        IfAction,
        GotoAction,
        EndAction,
    ]
    assert actions[0].target == "g.health"
    assert actions[0].is_field_path
    assert not actions[1].is_field_path
    assert actions[1].expr.text == "x + 1"
    assert [actions[3].template, actions[4].template] == ["a", "b ${x}"]
    assert actions[5].target == "yes"
    assert actions[5].else_target == "no"
    assert actions[5].condition.evaluate({"x": 2}, {}, {}) == 1
    assert actions[6].else_target is None


def test_free_form_statements_are_classified() -> None:
    source = """
    node n {
        g.hit(1 + 2, (3));
        new Guard h;
        print("hello");
        print(gold + 1);
        wave hello;
    }
    """
    actions = parse_source(source).program.nodes["n"].actions
    call, new, literal, expr, unknown = actions
    assert isinstance(call, MethodCallStmt)
    assert (call.instance, call.method) == ("g", "hit")
    assert [arg.evaluate({}, {}, {}) for arg in call.args] == [3, 3]
    assert isinstance(new, NewStmt)
    assert (new.class_name, new.instance_name) == ("Guard", "h")
    assert isinstance(literal, PrintStmt)
    assert literal.literal == "hello"
    assert isinstance(expr, PrintStmt)
    assert expr.literal is None
    assert expr.expr is not None
    assert expr.expr.evaluate({"gold": 4}, {}, {}) == 5
    assert isinstance(unknown, UnknownStmt)
    assert unknown.raw == "wave hello"


def test_classify_statement_keeps_spacing_and_quotes() -> None:
    tokens = [token for token in tokenize('say("hi there", 2)') if token.kind != "eof"]
    stmt = classify_statement(tokens)
    assert isinstance(stmt, UnknownStmt)
    assert stmt.raw == 'say ( "hi there" , 2 )'


def test_method_call_without_arguments() -> None:
    tokens = [token for token in tokenize("g.wave()") if token.kind != "eof"]
    stmt = classify_statement(tokens)
    assert isinstance(stmt, MethodCallStmt)
    assert stmt.args == []


def test_method_body_accepts_control_flow() -> None:
    source = """
    class C {
        void m() {
            set a = 1;
            if (a) goto out;
            end;
        }
    }
    """
    actions = parse_source(source).program.classes["C"].methods["m"]
    assert [type(action) for action in actions] == [SetAction, IfAction, EndAction]


def test_line_in_method_body_is_rejected() -> None:
    source = 'class C { void m() { line "no"; set a = 1; } }'
    result = parse_source(source)
    assert "line is not allowed in a method body" in [d.message for d in result.diagnostics]
    assert [type(action) for action in result.program.classes["C"].methods["m"]] == [SetAction]


def test_missing_semicolon_reports_line() -> None:
    result = parse_source('npc "Bob"\nnode a { end; }')
    assert len(result.diagnostics) == 1
    diagnostic = result.diagnostics[0]
    assert diagnostic.line == 2
    assert diagnostic.message == "Expected symbol ';' but got 'node'"
    assert "a" in result.program.nodes


def test_parse_errors_do_not_stop_parsing() -> None:
    messages = _messages('npc 5;\nfoo;\nstring s = 5;\nclass C { bogus; }\nnode a { end; }')
    assert "npc requires string" in messages
    assert "Unknown top-level keyword: foo" in messages
    assert "String variable requires string literal" in messages
    assert "Unknown class member: bogus" in messages
    program = parse_source('string s = 5;\nnode a { end; }').program
    assert "s" not in program.string_vars
    assert "a" in program.nodes


def test_new_with_unknown_class_is_reported() -> None:
    result = parse_source("new Ghost g;")
    assert [d.message for d in result.diagnostics] == ["Unknown class Ghost for new"]
    assert result.program.objects == {}


def test_duplicate_node_replaces_earlier_definition() -> None:
    result = parse_source('node a { line "one"; }\nnode a { line "two"; }')
    assert result.program.nodes["a"].text == "two"
    assert result.diagnostics[0].message == "Duplicate node 'a' replaces earlier definition"
    assert result.diagnostics[0].line == 2


def test_choice_accepts_split_arrow() -> None:
    program = parse_source('node a { choice 1: "x" - > b; }').program
    assert program.nodes["a"].choices[0].target == "b"


def test_rooms_and_pictures_are_stored() -> None:
    source = """
    room hall {
        desc "A long hall.";
        exit north yard;
        item key;
        npc keeper;
    }
    room yard { desc "Open air."; }
    picture portraits[3] = load("images/portraits");
    """
    result = parse_source(source)
    assert result.diagnostics == []
    program = result.program
    hall = program.rooms["hall"]
    assert hall.description == "A long hall."
    assert hall.exits == {"north": "yard"}
    assert hall.items == ["key"]
    assert hall.npcs == ["keeper"]
    assert program.current_room == "hall"
    picture = program.pictures["portraits"]
    assert (picture.size, picture.path, picture.line) == (3, "images/portraits", 9)
    assert program.nodes == {}


def test_non_ascii_digit_in_declaration_does_not_break_parse() -> None:
    result = parse_source("int x = 5²;\nnode s { end; }")
    assert result.program.int_vars["x"] == 5
    assert result.program.entry == "s"


def test_malformed_first_node_is_not_the_entry() -> None:
    result = parse_source("node bad\nnode good { end; }")
    assert result.program.entry == "good"
    assert "bad" not in result.program.nodes
    assert [d.message for d in result.diagnostics] == ["expected '{' after node name"]
