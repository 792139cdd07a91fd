from app.services.percentages import compute_percentage, format_percentage, average


class TestComputePercentage:
    def test_share_of_total(self):
        assert compute_percentage(600, 1000) == 60.0
        assert compute_percentage(1000, 1000) == 100.0

    def test_rounds_to_two_decimals(self):
        assert compute_percentage(1, 3) == 33.33
        assert compute_percentage(2, 3) == 66.67

    def test_zero_grand_total(self):
        assert compute_percentage(0, 0) == 0


class TestFormatPercentage:
    def test_formats_with_two_decimals_and_sign(self):
        assert format_percentage(600, 1000) == "60.00%"
        assert format_percentage(1, 3) == "33.33%"

    def test_zero_grand_total(self):
        assert format_percentage(0, 0) == "0%"


class TestAverage:
    def test_rounded_mean(self):
        assert average(1000, 2) == 500
        assert average(10, 3) == 3.33

    def test_no_records(self):
        assert average(0, 0) == 0
