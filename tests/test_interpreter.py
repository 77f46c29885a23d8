import io

from crtz.domain.program import Node, Program
from crtz.language.parser import parse_source
from crtz.services.interpreter import Frame, Interpreter, interpolate, substitute_player
from tests.helpers.script_runner import run_script_text

_CHOICES = """
node start {
    line "Pick one";
    choice 1: "A" -> a;
    choice 2: "B" -> b;
}
node a { line "went a"; end; }
node b { line "went b"; end; }
"""


def test_intro_prints_npc_and_description() -> None:
    run = run_script_text('npc "Bob";\ndesc "A shopkeeper.";\nnode s { end; }')
    assert run.out == "Npc: Bob\nDescription: A shopkeeper.\n\n[Dialogue ended]\n"


def test_choice_dispatch_follows_selected_target() -> None:
    run = run_script_text(_CHOICES, ["2"])
    assert run.lines == ["Pick one", "[1] A", "[2] B", "went b", "[Dialogue ended]"]
    assert run.outcome.status == "ended"
    assert run.outcome.visited_nodes == ["start", "b"]
    assert run.prompts == ["Choose: "]


def test_invalid_choice_reprompts_without_moving() -> None:
    run = run_script_text(_CHOICES, ["7", "abc", " 1 "])
    assert run.lines[3:] == ["Invalid choice", "Invalid", "went a", "[Dialogue ended]"]
    assert run.prompts == ["Choose: ", "Choose: ", "Choose: "]
    assert run.outcome.visited_nodes == ["start", "a"]


def test_duplicate_choice_ids_first_match_wins() -> None:
    source = 'node s { choice 1: "x" -> a; choice 1: "y" -> b; }\nnode a { end; }\nnode b { end; }'
    run = run_script_text(source, ["1"])
    assert run.outcome.last_node == "a"


def test_input_closed_during_choice_stops_run() -> None:
    run = run_script_text(_CHOICES, [])
    assert run.outcome.status == "input_closed"
    assert run.outcome.visited_nodes == ["start"]
    assert "Input closed while waiting for a choice." in run.err


def test_choices_short_circuit_node_actions() -> None:
    source = 'node s { choice 1: "go" -> t; signal never = 1; }\nnode t { end; }'
    run = run_script_text(source, ["1"])
    assert "[SIGNAL]" not in run.out


def test_player_placeholder_in_line_and_choices() -> None:
    source = 'node s { line "Hello [@You]"; choice 1: "I am [@You]" -> t; }\nnode t { end; }'
    run = run_script_text(source, ["1"], player_name="Andrew")
    assert run.lines[:2] == ["Hello [Andrew]", "[1] I am [Andrew]"]


def test_line_interpolates_object_field() -> None:
    source = 'class Guard { int health = 7; }\nnew Guard obj;\nnode s { line "HP: ${obj.health}"; }'
    run = run_script_text(source)
    assert run.lines == ["HP: 7", "[End of Conversation]"]
    assert run.outcome.status == "fell_off"


def test_show_interpolates_every_kind_of_name() -> None:
    source = """
    int gold = 3;
    match open = true;
    string city = "Varn";
    node s {
        show "${gold} ${open} ${city} ${nothing}", "plain";
    }
    """
    run = run_script_text(source)
    assert run.lines[:2] == ["3 true Varn 0", "plain"]


def test_end_halts_before_remaining_nodes() -> None:
    run = run_script_text('node a { end; show "never"; }\nnode b { line "never"; }')
    assert run.lines == ["[Dialogue ended]"]
    assert run.outcome.visited_nodes == ["a"]


def test_if_takes_primary_target_when_true() -> None:
    source = 'int x = 1;\nnode s { if (x) goto yes else goto no; }\nnode yes { line "yes"; }\nnode no { line "no"; }'
    run = run_script_text(source)
    assert run.lines[0] == "yes"


def test_if_takes_else_target_when_false() -> None:
    source = 'int x = 0;\nnode s { if (x) goto yes else goto no; }\nnode yes { line "yes"; }\nnode no { line "no"; }'
    run = run_script_text(source)
    assert run.lines[0] == "no"


def test_if_without_else_falls_through() -> None:
    source = 'int x = 0;\nnode s { if (x == 1) goto yes; show "fell"; goto no; }\nnode yes { line "yes"; }\nnode no { line "no"; }'
    run = run_script_text(source)
    assert run.lines[:2] == ["fell", "no"]
    assert run.outcome.visited_nodes == ["s", "no"]


def test_set_updates_ints_and_coerces_bools() -> None:
    source = """
    int gold = 5;
    match ok = false;
    node s {
        set gold = gold * 2;
        set ok = 5;
        set fresh = 1;
    }
    """
    result = parse_source(source)
    program = result.program
    Interpreter(program, "Andrew", out=io.StringIO(), err=io.StringIO()).run()
    assert program.int_vars == {"gold": 10, "fresh": 1}
    assert program.bool_vars == {"ok": True}


def test_set_object_field_path() -> None:
    source = 'class Guard { int health = 7; }\nnew Guard g;\nnode s { set g.health = g.health - 2; show "${g.health}"; }'
    run = run_script_text(source)
    assert run.lines[0] == "5"


def test_signal_prints_evaluated_value() -> None:
    run = run_script_text("node s { signal alarm = 2 + 3; }")
    assert run.lines[0] == "[SIGNAL] alarm = 5"


def test_print_literal_and_expression() -> None:
    run = run_script_text('int gold = 4;\nnode s { print("hello there"); print(gold + 1); }')
    assert run.lines[:2] == ["hello there", "5"]


def test_unknown_statement_is_ignored() -> None:
    run = run_script_text('node s { wave hello; show "after"; }')
    assert run.lines[0] == "after"
    assert run.err == ""


def test_unknown_node_halts_with_error() -> None:
    run = run_script_text("node s { goto nowhere; }")
    assert run.outcome.status == "unknown_node"
    assert run.err == "Unknown node: nowhere\n"
    assert "[End of Conversation]" not in run.out


def test_program_without_nodes_reports_empty() -> None:
    run = run_script_text('npc "Bob";')
    assert run.outcome.status == "empty"
    assert run.lines == ["Npc: Bob"]
    assert "Program has no nodes to run." in run.err


def test_parse_diagnostics_are_reported_but_run_continues() -> None:
    run = run_script_text('npc "Bob"\nnode s { line "hi"; }')
    assert run.err.startswith("Error at line 2: Expected symbol ';' but got 'node'")
    assert "hi" in run.lines


def test_loop_between_nodes_keeps_state() -> None:
    source = """
    int n = 0;
    node loop {
        set n = n + 1;
        if (n < 3) goto loop;
        show "n=${n}";
        end;
    }
    """
    run = run_script_text(source)
    assert run.lines == ["n=3", "[Dialogue ended]"]
    assert run.outcome.visited_nodes == ["loop", "loop", "loop"]


def test_interpolate_leaves_unclosed_placeholder() -> None:
    frame = Frame(int_vars={"a": 1}, bool_vars={}, string_vars={}, objects={})
    assert interpolate("a=${a} b=${b", frame) == "a=1 b=${b"


def test_substitute_player_replaces_every_placeholder() -> None:
    assert substitute_player("[@You] and [@You]", "Kim") == "[Kim] and [Kim]"


def test_interpreter_runs_hand_built_program() -> None:
    program = Program(nodes={"only": Node(name="only", text="solo")}, entry="only")
    out = io.StringIO()
    outcome = Interpreter(program, "Andrew", out=out, err=io.StringIO()).run()
    assert out.getvalue() == "solo\n[End of Conversation]\n"
    assert outcome.last_node == "only"


def test_set_with_non_ascii_digit_runs() -> None:
    run = run_script_text('int x = 0;\nnode s { set x = 5²; show "${x}"; end; }')
    assert run.lines == ["5", "[Dialogue ended]"]
    assert run.err == ""


def test_malformed_first_node_does_not_halt_run() -> None:
    run = run_script_text('node bad\nnode good { show "ok"; end; }')
    assert run.outcome.status == "ended"
    assert run.outcome.visited_nodes == ["good"]
    assert run.lines == ["ok", "[Dialogue ended]"]
