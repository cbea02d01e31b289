"""Test FIRST and FOLLOW fixed-point computation"""

import unittest
from textwrap import dedent

from ll1_parser import FirstFollowComputer, GrammarProcessor

EXPRESSION_GRAMMAR = dedent("""\
    E -> T Ep
    Ep -> + T Ep
    Ep -> epsilon
    T -> F Tp
    Tp -> * F Tp
    Tp -> epsilon
    F -> ( E )
    F -> id
    """)


def computer_for(grammar_text, strict_epsilon=False):
    grammar = GrammarProcessor().parse_grammar(grammar_text)
    computer = FirstFollowComputer(grammar, strict_epsilon=strict_epsilon)
    computer.compute_first_sets()
    computer.compute_follow_sets()
    return computer


class TestFirstSets(unittest.TestCase):
    def test_expression_grammar(self):
        for strict in (False, True):
            with self.subTest(strict_epsilon=strict):
                first = computer_for(EXPRESSION_GRAMMAR, strict).compute_first_sets()
                self.assertEqual(first["E"], {"(", "id"})
                self.assertEqual(first["T"], {"(", "id"})
                self.assertEqual(first["F"], {"(", "id"})
                self.assertEqual(first["Ep"], {"+", "epsilon"})
                self.assertEqual(first["Tp"], {"*", "epsilon"})

    def test_balanced_grammar(self):
        first = computer_for("S -> a S b\nS -> epsilon\n").compute_first_sets()
        self.assertEqual(first, {"S": {"a", "epsilon"}})

    def test_left_recursion_terminates(self):
        first = computer_for("E -> E + T\nE -> T\nT -> id\n").compute_first_sets()
        self.assertEqual(first["E"], {"id"})

    def test_legacy_epsilon_leaks_through_nullable_prefix(self):
        computer = computer_for("A -> B c\nB -> epsilon\n")
        self.assertEqual(computer.get_first("B"), {"epsilon"})
        self.assertEqual(computer.first_of(["B", "c"]), {"epsilon", "c"})
        self.assertEqual(computer.get_first("A"), {"epsilon", "c"})

    def test_strict_epsilon_only_when_sequence_vanishes(self):
        computer = computer_for("A -> B c\nB -> epsilon\nC -> B B\n", strict_epsilon=True)
        self.assertEqual(computer.get_first("B"), {"epsilon"})
        self.assertEqual(computer.first_of(["B", "c"]), {"c"})
        self.assertEqual(computer.get_first("A"), {"c"})
        self.assertEqual(computer.get_first("C"), {"epsilon"})

    def test_empty_sequence(self):
        self.assertEqual(computer_for("S -> a\n").first_of([]), set())
        self.assertEqual(computer_for("S -> a\n", strict_epsilon=True).first_of([]), {"epsilon"})

    def test_terminal_first(self):
        computer = computer_for("S -> a\n")
        self.assertEqual(computer.get_first("a"), {"a"})


class TestFollowSets(unittest.TestCase):
    def test_expression_grammar_strict(self):
        follow = computer_for(EXPRESSION_GRAMMAR, strict_epsilon=True).compute_follow_sets()
        self.assertEqual(follow["E"], {"$", ")"})
        self.assertEqual(follow["Ep"], {"$", ")"})
        self.assertEqual(follow["T"], {"+", "$", ")"})
        self.assertEqual(follow["Tp"], {"+", "$", ")"})
        self.assertEqual(follow["F"], {"*", "+", "$", ")"})

    def test_expression_grammar_legacy(self):
        # FIRST of a nullable suffix is unioned whole, epsilon included
        follow = computer_for(EXPRESSION_GRAMMAR).compute_follow_sets()
        self.assertEqual(follow["E"], {"$", ")"})
        self.assertEqual(follow["Ep"], {"$", ")"})
        self.assertEqual(follow["T"], {"+", "epsilon", "$", ")"})
        self.assertEqual(follow["Tp"], {"+", "epsilon", "$", ")"})
        self.assertEqual(follow["F"], {"*", "+", "epsilon", "$", ")"})

    def test_balanced_grammar(self):
        follow = computer_for("S -> a S b\nS -> epsilon\n").compute_follow_sets()
        self.assertEqual(follow, {"S": {"$", "b"}})

    def test_start_symbol_not_on_any_rhs(self):
        follow = computer_for("S -> A\nA -> a\n").compute_follow_sets()
        self.assertEqual(follow["S"], {"$"})
        self.assertEqual(follow["A"], {"$"})

    def test_follow_computes_first_on_demand(self):
        grammar = GrammarProcessor().parse_grammar("S -> a S b\nS -> epsilon\n")
        computer = FirstFollowComputer(grammar)
        self.assertEqual(computer.compute_follow_sets(), {"S": {"$", "b"}})
        self.assertGreater(computer.first_passes, 0)


class TestFixedPoint(unittest.TestCase):
    def test_stabilized_sets_do_not_grow(self):
        for strict in (False, True):
            with self.subTest(strict_epsilon=strict):
                computer = computer_for(EXPRESSION_GRAMMAR, strict)
                first = computer.compute_first_sets()
                follow = computer.compute_follow_sets()
                for production in computer.grammar.productions:
                    self.assertLessEqual(computer.first_of(production.rhs), first[production.lhs])
                for non_terminal in computer.grammar.non_terminals:
                    self.assertLessEqual(computer.follow_of(non_terminal), follow[non_terminal])

    def test_recomputation_is_idempotent(self):
        computer = computer_for(EXPRESSION_GRAMMAR)
        first, follow = computer.compute_first_sets(), computer.compute_follow_sets()
        self.assertEqual(computer.compute_first_sets(), first)
        self.assertEqual(computer.compute_follow_sets(), follow)

    def test_pass_bound(self):
        computer = computer_for(EXPRESSION_GRAMMAR)
        grammar = computer.grammar
        bound = len(grammar.non_terminals) * (len(grammar.terminals) + 2) + 1
        self.assertLessEqual(computer.first_passes, bound)
        self.assertLessEqual(computer.follow_passes, bound)
