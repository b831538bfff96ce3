import unittest
from decimal import Decimal

from ptajournal.commodity import Commodity
from ptajournal.currency import Currency, CurrencyRegistry
from ptajournal.errors import ConversionError, UnimplementedError, \
    CommodityParseError

def commodity(s: str) -> Commodity:
    return Commodity.from_str(s)

def commodity_op(lstr: str, op: str, rstr: str) -> str:
    l = commodity(lstr)
    r = commodity(rstr)
    return str(l + r if op == "+" else l - r)

class TestCommodity(unittest.TestCase):

    def test_from_str(self):
        x = commodity("$ 1.30")
        self.assertEqual((x.code, x.alphabetic_code, x.quantity, x.precision),
                         ("$", "USD", 130, 2))
        x = commodity("$1")
        self.assertEqual((x.quantity, x.precision), (100, 2))
        x = commodity("$-500.00")
        self.assertEqual(x.quantity, -50000)
        x = commodity("0.907082  EUR")
        self.assertEqual((x.code, x.quantity, x.precision),
                         ("EUR", 907082, 6))
        x = commodity("$500,000.00")
        self.assertEqual(str(x), "$ 500000.00")
        x = commodity("-10 AAPL")
        self.assertEqual((x.code, x.alphabetic_code, x.quantity, x.precision),
                         ("AAPL", "AAPL", -10, 0))
        x = commodity("1100 HNL")
        self.assertEqual(str(x), "1100.00 HNL")

    def test_from_str_failures(self):
        with self.assertRaises(CommodityParseError):
            commodity("AAPL")
        with self.assertRaises(CommodityParseError):
            commodity("100")
        with self.assertRaises(UnimplementedError):
            commodity("10 AAPL @ $5.00")

    def test_from_str_without_digits(self):
        for s in ("$ -,", "$ ,", ",, USD", "-, EUR"):
            with self.assertRaises(CommodityParseError):
                commodity(s)

    def test_from_str_with_remainder(self):
        x, remainder = Commodity.from_str_with_remainder("10 AAPL @ $5.00")
        self.assertEqual(str(x), "10 AAPL")
        self.assertEqual(remainder, " @ $5.00")
        x, remainder = Commodity.from_str_with_remainder("$ 5.00")
        self.assertEqual(str(x), "$ 5.00")
        self.assertEqual(remainder, "")

    def test_from_symbol_and_amount(self):
        x = Commodity.from_symbol_and_amount("$", "1")
        self.assertEqual((x.quantity, x.precision), (100, 2))
        x = Commodity.from_symbol_and_amount("$", "0.00025")
        self.assertEqual((x.quantity, x.precision), (25, 5))
        x = Commodity.from_symbol_and_amount("AAPL", 3)
        self.assertEqual((x.quantity, x.precision), (3, 0))

    def test_commodity_from_string_of_zero(self):
        zero = Commodity.from_symbol_and_amount(None, "0")
        self.assertEqual(zero.quantity, 0)
        self.assertIsNone(zero.alphabetic_code)
        self.assertIsNone(zero.code)
        self.assertEqual(str(zero), "0")

    def test_commodity_from_str_with_double_quotes(self):
        x = commodity("1 FLORIDAHOME")
        self.assertEqual(x.quantity, 1)
        self.assertEqual(x.alphabetic_code, "FLORIDAHOME")
        self.assertEqual(str(x), "1 FLORIDAHOME")

        x = commodity('100 "crab apples"')
        self.assertEqual(x.quantity, 100)
        self.assertEqual(x.code, "crab apples")
        self.assertEqual(str(x), '100 "crab apples"')

        x = commodity('"crab apples" 100')
        self.assertEqual(x.alphabetic_code, "crab apples")
        self.assertEqual(str(x), '100 "crab apples"')

        x = commodity('1 "test \\" ing"')
        self.assertEqual(x.quantity, 1)
        self.assertEqual(x.code, 'test \\" ing')
        self.assertEqual(str(x), '1 "test \\" ing"')

        x = commodity('"test \\" ing" 1')
        self.assertEqual(x.alphabetic_code, 'test \\" ing')
        self.assertEqual(str(x), '1 "test \\" ing"')

    def test_commodity_comparison_when_precision_not_equal(self):
        self.assertEqual(commodity("$ 23.01"), commodity("$ 23.010"))
        self.assertEqual(commodity("$ 23.010"), commodity("$ 23.01"))
        self.assertEqual(commodity("$ 23.00"), commodity("$ 23.000000"))
        self.assertNotEqual(commodity("$ 13.000"), commodity("$ 23.00"))
        self.assertNotEqual(commodity("$ 23.00"), commodity("$ 13.000"))
        self.assertTrue(commodity("$ 13.000") < commodity("$ 23.00"))
        self.assertTrue(commodity("$ 23.001") > commodity("$ 23.00"))
        self.assertTrue(commodity("$ 23.00") >= commodity("$ 23.000"))
        self.assertTrue(commodity("$ 23.00") <= commodity("23 USD"))
        self.assertEqual(commodity("$ 1.00").compare(commodity("$ 2")), -1)
        self.assertEqual(commodity("$ 2.00").compare(commodity("$ 2")), 0)
        self.assertEqual(commodity("$ 3.00").compare(commodity("$ 2")), 1)

    def test_comparison_between_kinds(self):
        with self.assertRaises(ConversionError):
            commodity("$ 1.00") == commodity("1.00 EUR")
        with self.assertRaises(ConversionError):
            commodity("$ 1.00") < commodity("1 AAPL")
        self.assertFalse(commodity("$ 1.00") == 1)
        with self.assertRaises(TypeError):
            commodity("$ 1.00") < 1

    def test_commodity_add_and_sub_when_precision_not_equal(self):
        self.assertEqual(commodity_op("$ 2", "+", "$ 30"), "$ 32.00")
        self.assertEqual(commodity_op("$ 24.01", "+", "$ 1"), "$ 25.01")
        self.assertEqual(commodity_op("$ 23.01", "+", "$ 23.010"), "$ 46.02")
        self.assertEqual(commodity_op("$ 5.000020", "+", "$ 10.010"),
                         "$ 15.01002")
        self.assertEqual(commodity_op("$ 10.000004", "+", "$ 100.000006"),
                         "$ 110.00001")
        self.assertEqual(commodity_op("$ 5.1", "+", "$ 10.1"), "$ 15.20")
        self.assertEqual(commodity_op("$ 5.10", "+", "$ 10"), "$ 15.10")
        self.assertEqual(commodity_op("$ 5.005", "+", "$ 5.005"), "$ 10.01")

        self.assertEqual(commodity_op("$ 1", "-", "$ 1"), "$ 0.00")
        self.assertEqual(commodity_op("$ 3.0009", "-", "$ 1.0013"),
                         "$ 1.9996")
        self.assertEqual(
            commodity_op("$ 1.000000000000001", "-", "$ 2.000000000000001"),
            "$ -1.00")
        self.assertEqual(commodity_op("$ 0.2", "-", "$ 0.1"), "$ 0.10")
        self.assertEqual(commodity_op("$ 0.02", "-", "$ 0.01"), "$ 0.01")
        self.assertEqual(commodity_op("$ 0.1", "-", "$ 0.05"), "$ 0.05")
        self.assertEqual(commodity_op("$ 1.0", "-", "$ 0.1"), "$ 0.90")
        self.assertEqual(commodity_op("$ 1.0", "-", "$ 0.01"), "$ 0.99")

        self.assertEqual(commodity_op("$ -0.2", "-", "$ -0.1"), "$ -0.10")
        self.assertEqual(commodity_op("$ -0.1", "-", "$ -0.05"), "$ -0.05")
        self.assertEqual(commodity_op("$ -1.0", "-", "$ -0.01"), "$ -0.99")

        self.assertEqual(commodity_op("$ -0.2", "-", "$ 0.1"), "$ -0.30")
        self.assertEqual(commodity_op("$ -1.0", "-", "$ 0.1"), "$ -1.10")

        self.assertEqual(commodity_op("$ 0.2", "-", "$ -0.1"), "$ 0.30")
        self.assertEqual(commodity_op("$ 1.0", "-", "$ -0.01"), "$ 1.01")

    def test_add_is_commutative(self):
        a = commodity("$ 1.25")
        b = commodity("$ 0.0075")
        self.assertEqual(str(a + b), str(b + a))
        self.assertEqual(str(a + b), "$ 1.2575")

    def test_add_unknown_commodity(self):
        # Without a currency there is no minor unit to trim towards.
        self.assertEqual(str(commodity("1.50 AAPL") + commodity("0.50 AAPL")),
                         "2.00 AAPL")
        self.assertEqual(str(commodity("1.50 AAPL") - commodity("1.5 AAPL")),
                         "0.00 AAPL")

    def test_add_different_kinds(self):
        with self.assertRaises(ConversionError):
            commodity("$ 1.00") + commodity("1.00 EUR")
        with self.assertRaises(TypeError):
            commodity("$ 1.00") + Decimal("1.00")

    def test_sum(self):
        x = sum(commodity(s) for s in
                ["$ 22.00", "$ 60.00", "$ 8.00", "$ 10.00"])
        self.assertEqual(x, commodity("$ 100.00"))

    def test_huge_decimal_sum_when_decimal_zeros(self):
        x = sum([commodity("$ 443.0000000000"), commodity("$ 50.0000000000")])
        self.assertEqual(str(x), "$ 493.00")
        x = sum([commodity("$ 443.0500000000"), commodity("$ 50.0500000000")])
        self.assertEqual(str(x), "$ 493.10")
        x = sum([commodity("$ 0.0000000000"), commodity("$ 0.0000000000")])
        self.assertEqual(str(x), "$ 0.00")

    def test_commodity_mul_by_numeric(self):
        self.assertEqual(commodity("$ 2") * 16, commodity("$ 32.00"))
        self.assertEqual(commodity("$ 2") * 8.5, commodity("$ 17.00"))
        self.assertEqual(commodity("$ 0.5") * 4, commodity("$ 2.00"))
        self.assertEqual(commodity("$ -2") * 16, commodity("$ -32.00"))
        self.assertEqual(commodity("$ -2") * 8.5, commodity("$ -17.00"))
        self.assertEqual(commodity("$ 2") * -16, commodity("$ -32.00"))
        self.assertEqual(commodity("$ 0.5") * -4, commodity("$ -2.00"))
        self.assertEqual(commodity("$ 2.00005") * 0.25,
                         commodity("$ 0.5000125"))
        self.assertEqual(commodity("$ 0.25") * 2.00005,
                         commodity("$ 0.5000125"))
        self.assertEqual(commodity("$ 0.25") * Decimal("2.00005"),
                         commodity("$ 0.5000125"))
        self.assertEqual(3 * commodity("$ 1.50"), commodity("$ 4.50"))
        self.assertEqual(str(commodity("$ 2") * 16), "$ 32.00")

    def test_commodity_div_by_numeric(self):
        self.assertEqual(commodity("$ 32.00") / 16, commodity("$ 2"))
        self.assertEqual(commodity("$ 17.00") / 8.5, commodity("$ 2"))
        self.assertEqual(commodity("$ 2.00") / 4, commodity("$ 0.5"))
        self.assertEqual(commodity("$ -32.00") / 16, commodity("$ -2"))
        self.assertEqual(commodity("$ -32.00") / -16, commodity("$ 2"))
        self.assertEqual(commodity("$ -2.00") / -4, commodity("$ 0.5"))
        self.assertEqual(commodity("$ 0.5000125") / 0.25,
                         commodity("$ 2.00005"))
        self.assertEqual(commodity("$ 0.5000125") / 2.00005,
                         commodity("$ 0.25"))
        self.assertEqual(commodity("$ 0.01") / 2, commodity("$ 0.005"))
        self.assertEqual(str(commodity("$ 1.00") / 3),
                         "$ 0.33333333333333333")

    def test_mul_by_commodity(self):
        with self.assertRaises(UnimplementedError):
            commodity("$ 2.00") * commodity("$ 3.00")
        with self.assertRaises(ConversionError):
            commodity("$ 2.00") / commodity("3 AAPL")

    def test_round(self):
        cases = [
            ("$ 123.455", 2, "$ 123.46"),
            ("$ -123.455", 2, "$ -123.46"),
            ("$ 123.459999999999", 2, "$ 123.46"),
            ("$ 123.4545454545454", 6, "$ 123.454545"),
            ("$ -123.459999999999", 2, "$ -123.46"),
            ("$ 123.454444449", 2, "$ 123.45"),
            ("$ -123.454444449", 2, "$ -123.45"),
            ("$ 123.44", 2, "$ 123.44"),
            ("$ 123.4", 4, "$ 123.4000"),
            ("$ -123.4", 4, "$ -123.4000"),
            ("$ 123", 4, "$ 123.0000"),
            ("$ 123.0455555555", 0, "$ 123"),
            ("$ -123.0455555555", 0, "$ -123"),
            ("$ 999.99999", 2, "$ 1000.00"),
            ("$ -999.99999", 2, "$ -1000.00"),
            ("$ 123.454", 2, "$ 123.45"),
            ("$ 2584.09", 2, "$ 2584.09"),
            ("$ 2584.009", 3, "$ 2584.009"),
            ("$ 2584.900", 3, "$ 2584.900"),
            ("$ 2584.9", 1, "$ 2584.9"),
            ("$ 1.005", 2, "$ 1.01"),
            ("$ 1.004", 2, "$ 1.00"),
        ]
        for s, digit, expected in cases:
            self.assertEqual(str(commodity(s).round(digit)), expected)
        # The mantissa here begins with zeros.
        x = (commodity("$ 139.76") * (22290.0 / 622290.0)).round(2)
        self.assertEqual(str(x), "$ 5.01")

    def test_floor(self):
        cases = [
            ("$ 123.455", 2, "$ 123.45"),
            ("$ -123.455", 2, "$ -123.45"),
            ("$ 123.459999999999", 2, "$ 123.45"),
            ("$ 123.4545454545454", 6, "$ 123.454545"),
            ("$ -123.454444449", 2, "$ -123.45"),
            ("$ 123.4", 4, "$ 123.4000"),
            ("$ -123", 4, "$ -123.0000"),
            ("$ 123.0455555555", 0, "$ 123"),
            ("$ 999.99999", 2, "$ 999.99"),
            ("$ -999.99999", 2, "$ -999.99"),
            ("$ 2584.009", 3, "$ 2584.009"),
        ]
        for s, digit, expected in cases:
            self.assertEqual(str(commodity(s).floor(digit)), expected)

    def test_round_negative_digit(self):
        with self.assertRaises(UnimplementedError):
            commodity("$ 1.00").round(-1)
        with self.assertRaises(UnimplementedError):
            commodity("$ 1.00").floor(-1)

    def test_to_str_features(self):
        self.assertEqual(commodity("$ 0").to_str(commatize=True), "$ 0.00")
        self.assertEqual(commodity("$ 123.00").to_str(commatize=True),
                         "$ 123.00")
        self.assertEqual(commodity("$ 1234.00").to_str(commatize=True),
                         "$ 1,234.00")
        self.assertEqual(commodity("$ 123456.00").to_str(commatize=True),
                         "$ 123,456.00")
        self.assertEqual(commodity("$ 1234567.00").to_str(commatize=True),
                         "$ 1,234,567.00")
        self.assertEqual(commodity("$ -1234567.00").to_str(commatize=True),
                         "$ -1,234,567.00")

        self.assertEqual(commodity("$ 123.00").to_str(precision=0), "$ 123")
        self.assertEqual(commodity("$ 123.00").to_str(precision=1), "$ 123.0")
        self.assertEqual(commodity("$ 123.00").to_str(precision=4),
                         "$ 123.0000")
        self.assertEqual(commodity("$ 123.455").to_str(precision=2),
                         "$ 123.46")
        self.assertEqual(commodity("$ 123.5").to_str(precision=0), "$ 124")
        self.assertEqual(commodity("$ 999.5").to_str(precision=0), "$ 1000")
        self.assertEqual(commodity("$ 0").to_str(precision=5), "$ 0.00000")
        self.assertEqual(
            commodity("$ 1234567.00").to_str(commatize=True, precision=5),
            "$ 1,234,567.00000")
        self.assertEqual(commodity("$ 5.00").to_str(no_code=True), "5.00")
        self.assertEqual(commodity("5 AAPL").quantity_as_str(), "5")

    def test_sign(self):
        x = commodity("$ -5.00")
        self.assertTrue(x.is_negative())
        self.assertFalse(x.is_positive())
        self.assertEqual(x.abs().quantity, 500)
        self.assertEqual(abs(x).quantity, 500)
        self.assertEqual(x.quantity, -500)
        zero = commodity("$ 0.00")
        self.assertFalse(zero.is_positive())
        self.assertFalse(zero.is_negative())

    def test_invert(self):
        x = commodity("$ 5.00")
        self.assertIs(x.invert(), x)
        self.assertEqual(x.quantity, -500)
        x.invert().invert()
        self.assertEqual(x.quantity, -500)
        self.assertEqual(str(-x), "$ 5.00")

    def test_to_decimal_and_float(self):
        x = commodity("$ -12.345")
        self.assertEqual(x.to_decimal(), Decimal("-12.345"))
        self.assertEqual(x.to_float(), -12.345)
        self.assertEqual(float(x), -12.345)

    def test_registry(self):
        registry = CurrencyRegistry(currencies=[
            Currency("TESTLAND", "Test Coin", "TST", 999, 3, "T")])
        x = Commodity.from_str("T 1", registry)
        self.assertEqual((x.alphabetic_code, x.quantity, x.precision),
                         ("TST", 1000, 3))
        y = x + Commodity.from_str("T 0.5", registry)
        self.assertEqual(str(y), "T 1.500")
        self.assertIs(y.registry, registry)
        x = Commodity.from_str("$ 1", registry)
        self.assertEqual((x.alphabetic_code, x.precision), ("$", 0))
