"""
Unit tests for loading gold standards and query result sets from files.
"""

import unittest
import sys
import os
import tempfile
import textwrap

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from ireval.errors import LoaderError
from ireval.gold_standard import GoldStandard
from ireval.loaders import (
    load_gold_standard,
    load_gold_standard_plaintext,
    load_gold_standard_qrels,
    load_gold_standard_yaml,
    load_query_result_set,
    load_query_result_set_run,
    load_query_result_set_yaml,
    load_query_result_yaml,
    load_run_file,
)

GOLD_STANDARD_YAML = textwrap.dedent("""\
    - query: 12th air force germany 1957
      documents:
      - id: g5701s.ict21311
        judgements: []
      - id: g5701s.ict21313
        judgements:
        - relevant: false
          user: 2
        - relevant: true
          user: 3
      - id: g5701s.ict21315
        judgements:
        - relevant: true
    - query: berlin wall
      documents:
      - id: bw1
        judgements:
        - relevant: true
          user: 2
""")

RESULTS_YAML = textwrap.dedent("""\
    - query: 12th air force germany 1957
      ranked: true
      documents:
        - id: g5701s.ict21315
          score: 95
        - id: g5701s.ict21313
          score: 38
    - query: berlin wall
      ranked: false
      documents:
        - document: bw1
""")


class LoaderTestCase(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.test_dir = self._tmp.name

    def tearDown(self):
        self._tmp.cleanup()

    def write(self, name, content):
        path = os.path.join(self.test_dir, name)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(content)
        return path


class TestGoldStandardLoading(LoaderTestCase):
    """Test cases for the gold standard file formats."""

    def test_load_yaml(self):
        gold_standard = load_gold_standard_yaml(self.write('gold.yml', GOLD_STANDARD_YAML))
        self.assertEqual(len(gold_standard.queries), 2)
        self.assertEqual(len(gold_standard.documents), 4)
        self.assertEqual(len(gold_standard.judgements), 4)
        self.assertEqual(sorted(gold_standard.users), [2, 3])
        self.assertTrue(gold_standard.contains_document("g5701s.ict21311"))
        self.assertFalse(gold_standard.contains_judgement("g5701s.ict21311", "12th air force germany 1957"))
        # One vote each way resolves to relevant
        self.assertTrue(gold_standard.is_relevant("g5701s.ict21313", "12th air force germany 1957"))

    def test_load_yaml_into_existing(self):
        gold_standard = GoldStandard()
        gold_standard.add_judgement("extra", "berlin wall", False)
        load_gold_standard_yaml(self.write('gold.yml', GOLD_STANDARD_YAML), gold_standard)
        self.assertEqual(len(gold_standard.documents), 5)

    def test_load_yaml_malformed_entry(self):
        path = self.write('bad.yml', "- query: q\n  documents:\n  - judgements:\n    - relevant: true\n")
        with self.assertRaises(LoaderError):
            load_gold_standard_yaml(path)

    def test_load_yaml_not_a_list(self):
        with self.assertRaises(LoaderError):
            load_gold_standard_yaml(self.write('bad.yml', "query: q\n"))

    def test_load_plaintext(self):
        path = self.write('gold.txt', (
            "my_query\tmy_document_1\tfalse\n"
            "my_query\tmy_document_2\ttrue\n"
            "my_query\tmy_document_2\ttrue\tJohn\n"
            "this line is ignored\n"
        ))
        gold_standard = load_gold_standard_plaintext(path)
        self.assertEqual(len(gold_standard.judgements), 3)
        self.assertFalse(gold_standard.is_relevant("my_document_1", "my_query"))
        self.assertTrue(gold_standard.is_relevant("my_document_2", "my_query"))
        self.assertTrue(gold_standard.contains_user("John"))

    def test_load_plaintext_bad_relevance(self):
        path = self.write('gold.txt', "my_query\tmy_document_1\tperhaps\n")
        with self.assertRaises(LoaderError):
            load_gold_standard_plaintext(path)

    def test_load_qrels(self):
        path = self.write('qrels.txt', (
            "query-id corpus-id score\n"
            "q1 0 d1 2\n"
            "q1 0 d2 0\n"
            "q2 d3 1\n"
        ))
        gold_standard = load_gold_standard_qrels(path)
        self.assertEqual(len(gold_standard.judgements), 3)
        self.assertTrue(gold_standard.is_relevant("d1", "q1"))
        self.assertFalse(gold_standard.is_relevant("d2", "q1"))
        self.assertTrue(gold_standard.is_relevant("d3", "q2"))

    def test_unknown_format(self):
        with self.assertRaises(LoaderError):
            load_gold_standard(self.write('gold.yml', GOLD_STANDARD_YAML), "xml")


class TestQueryResultLoading(LoaderTestCase):
    """Test cases for the query result file formats."""

    def setUp(self):
        super().setUp()
        self.gold_standard = load_gold_standard_yaml(self.write('gold.yml', GOLD_STANDARD_YAML))

    def test_load_result_set_yaml(self):
        result_set = load_query_result_set_yaml(self.write('results.yml', RESULTS_YAML), self.gold_standard)
        self.assertEqual(len(result_set), 2)
        ranked, unranked = result_set.query_results
        self.assertTrue(ranked.ranked)
        self.assertFalse(unranked.ranked)
        self.assertEqual([doc.id for doc in ranked.documents], ["g5701s.ict21315", "g5701s.ict21313"])
        self.assertEqual(ranked.documents[0].score, 95.0)
        self.assertIsNone(unranked.documents[0].score)
        self.assertIs(ranked.gold_standard, self.gold_standard)

    def test_load_result_set_ranked_flag_strings(self):
        path = self.write('results.yml', (
            "- query: berlin wall\n  ranked: 'false'\n  documents:\n  - id: bw1\n"
            "- query: berlin wall\n  ranked: 'yes'\n  documents:\n  - id: bw1\n"
            "- query: berlin wall\n  ranked: 0\n  documents:\n  - id: bw1\n"
        ))
        result_set = load_query_result_set_yaml(path, self.gold_standard)
        self.assertEqual([result.ranked for result in result_set], [False, True, False])

    def test_load_result_set_bad_ranked_flag(self):
        path = self.write('results.yml', "- query: q\n  ranked: sometimes\n  documents: []\n")
        with self.assertRaises(LoaderError):
            load_query_result_set_yaml(path, self.gold_standard)

    def test_load_result_set_missing_document_id(self):
        path = self.write('results.yml', "- query: q\n  ranked: true\n  documents:\n  - score: 3\n")
        with self.assertRaises(LoaderError):
            load_query_result_set_yaml(path, self.gold_standard)

    def test_load_single_result_yaml(self):
        path = self.write('result.yml', "- document: bw1\n  score: 13\n- id: bw2\n")
        result = load_query_result_yaml(path, "berlin wall", self.gold_standard)
        self.assertEqual([doc.id for doc in result.documents], ["bw1", "bw2"])
        self.assertTrue(result.ranked)

    def test_load_run_file_csv(self):
        run_file = self.write('test_run.csv', "qid,docid,score\nq1,d1,0.85\nq1,d2,0.95\nq2,d3,0.90\n")
        run = load_run_file(run_file)
        self.assertIn('q1', run)
        self.assertIn('q2', run)
        self.assertEqual(len(run['q1']), 2)
        self.assertEqual(run['q1'][0][0], 'd2')
        self.assertAlmostEqual(run['q1'][0][1], 0.95)

    def test_load_run_file_trec(self):
        run_file = self.write('test_run.trec', "q1 Q0 d1 1 12.5 bm25\nq1 Q0 d2 2 11.0 bm25\n")
        run = load_run_file(run_file)
        self.assertEqual(run['q1'], [('d1', 12.5), ('d2', 11.0)])

    def test_load_result_set_run(self):
        run_file = self.write('run.csv', "berlin wall,bw2,0.1\nberlin wall,bw1,0.9\n")
        result_set = load_query_result_set_run(run_file, self.gold_standard)
        result = result_set.query_results[0]
        self.assertTrue(result.ranked)
        self.assertEqual([doc.id for doc in result.documents], ["bw1", "bw2"])

    def test_dispatch(self):
        result_set = load_query_result_set(
            self.write('results.yml', RESULTS_YAML), self.gold_standard, "yaml"
        )
        self.assertEqual(len(result_set), 2)
        with self.assertRaises(LoaderError):
            load_query_result_set(self.write('results.yml', RESULTS_YAML), self.gold_standard, "json")


if __name__ == '__main__':
    unittest.main()
