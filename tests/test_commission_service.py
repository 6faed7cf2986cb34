# tests/test_commission_service.py
"""
Tests for CommissionService.

Tree used by most tests (see conftest.sample_index):

    Company (C) <- Alice (A) <- Bob (B) <- Eve (E)

Run:
    pytest tests/test_commission_service.py -v
"""
import pytest

from config import Config
from sponsor_tree.errors import InvalidAmount, MemberNotFound
from sponsor_tree.models.member import MemberStatus
from sponsor_tree.services.commission_service import CommissionService

TOLERANCE = 1e-6


def balances(index, *memberIds):
    return [index.find(memberId).balance for memberId in memberIds]


# =============================================================================
# TEST CLASS: distributeByPosition
# =============================================================================

class TestDistributeByPosition:
    """Tests for nearest-first, non-normalized distribution."""

    def test_eve_sale_pays_bob_and_alice(self, sample_index):
        """
        TEST: distributeByPosition("E", 200, [0.10, 0.05]).

        Bob (immediate sponsor) 20.0, Alice 10.0, Company untouched.
        """
        service = CommissionService(sample_index)
        commissions = service.distributeByPosition("E", 200.0, [0.10, 0.05])

        assert sample_index.find("B").balance == pytest.approx(20.0, abs=TOLERANCE)
        assert sample_index.find("A").balance == pytest.approx(10.0, abs=TOLERANCE)
        assert sample_index.find("C").balance == 0.0
        assert [c["memberId"] for c in commissions] == ["B", "A"]
        assert [c["level"] for c in commissions] == [1, 2]

    def test_seller_and_sales_untouched(self, sample_index):
        """TEST: position distribution credits uplines only."""
        CommissionService(sample_index).distributeByPosition("E", 200.0, [0.10])

        eve = sample_index.find("E")
        assert eve.balance == 0.0
        assert eve.ownSales == 0.0

    def test_more_percentages_than_uplines(self, sample_index):
        """TEST: entries beyond the chain are ignored."""
        commissions = CommissionService(sample_index).distributeByPosition(
            "A", 100.0, [0.5, 0.5, 0.5]
        )

        assert len(commissions) == 1
        assert sample_index.find("C").balance == pytest.approx(50.0)

    def test_percentages_not_normalized(self, sample_index):
        """TEST: percentages are absolute fractions, sums above 1 allowed."""
        CommissionService(sample_index).distributeByPosition("E", 100.0, [0.9, 0.9, 0.9])

        assert balances(sample_index, "B", "A", "C") == pytest.approx([90.0, 90.0, 90.0])

    def test_unknown_seller(self, sample_index):
        with pytest.raises(MemberNotFound):
            CommissionService(sample_index).distributeByPosition("missing", 100.0, [0.1])

    def test_negative_percentage_rejected_before_any_credit(self, sample_index):
        with pytest.raises(InvalidAmount):
            CommissionService(sample_index).distributeByPosition("E", 100.0, [0.1, -0.1])

        assert balances(sample_index, "B", "A", "C") == [0.0, 0.0, 0.0]

    def test_nan_percentage_rejected(self, sample_index):
        with pytest.raises(InvalidAmount):
            CommissionService(sample_index).distributeByPosition("E", 100.0, [0.1, float("nan")])

        assert balances(sample_index, "B", "A", "C") == [0.0, 0.0, 0.0]


# =============================================================================
# TEST CLASS: recordSale (weighted)
# =============================================================================

class TestRecordSaleWeighted:
    """Tests for recordSale with root-first square-root weights."""

    def test_eve_sells_ten_thousand(self, sample_index):
        """
        TEST: Eve (rate 0.5) sells 10000.

        Eve 5000; Bob + Alice + Company == 5000; Company > Alice > Bob.
        """
        sample_index.find("E").setCommissionRate(0.5)
        result = CommissionService(sample_index).recordSale("E", 10000.0)

        eve, bob, alice, company = balances(sample_index, "E", "B", "A", "C")
        assert eve == pytest.approx(5000.0, abs=TOLERANCE)
        assert bob + alice + company == pytest.approx(5000.0, abs=TOLERANCE)
        assert company > alice > bob

        assert result["success"] is True
        assert result["selfCommission"] == pytest.approx(5000.0)
        assert result["totalDistributed"] == pytest.approx(5000.0)
        assert sample_index.find("E").ownSales == 10000.0

    def test_exact_sqrt_shares(self, sample_index):
        """TEST: shares are sqrt(3):sqrt(2):1 from root to immediate sponsor."""
        CommissionService(sample_index).recordSale("E", 1000.0)

        total = 3 ** 0.5 + 2 ** 0.5 + 1.0
        company, alice, bob = balances(sample_index, "C", "A", "B")
        assert company == pytest.approx(1000.0 * 3 ** 0.5 / total)
        assert alice == pytest.approx(1000.0 * 2 ** 0.5 / total)
        assert bob == pytest.approx(1000.0 / total)

    def test_self_plus_distribution_equals_amount(self, wide_index):
        """TEST: selfCommission + distributed == amount for every seller with uplines."""
        service = CommissionService(wide_index)
        for i, member in enumerate(wide_index.members()):
            member.setCommissionRate((i % 5) / 5)

        for member in wide_index.members():
            before = sum(m.balance for m in wide_index.members())
            result = service.recordSale(member.memberId, 250.0)
            after = sum(m.balance for m in wide_index.members())

            assert after - before == pytest.approx(250.0 if wide_index.uplines(member.memberId)
                                                   else 250.0 * member.commissionRate)
            if wide_index.uplines(member.memberId):
                assert result["selfCommission"] + result["totalDistributed"] == pytest.approx(250.0)

    def test_root_seller_only_self_commission(self, sample_index):
        """TEST: rootless seller keeps amount * rate, nothing distributed."""
        sample_index.find("C").setCommissionRate(0.3)
        result = CommissionService(sample_index).recordSale("C", 100.0)

        assert sample_index.find("C").balance == pytest.approx(30.0)
        assert result["commissions"] == []
        assert result["totalDistributed"] == 0.0
        assert sum(balances(sample_index, "A", "B", "E")) == 0.0

    def test_inactive_seller_is_noop(self, sample_index):
        """TEST: inactive seller -> success False, no balances or sales change."""
        sample_index.find("E").setStatus(MemberStatus.INACTIVE)
        result = CommissionService(sample_index).recordSale("E", 500.0)

        assert result["success"] is False
        assert sample_index.find("E").ownSales == 0.0
        assert sum(balances(sample_index, "C", "A", "B", "E")) == 0.0

    def test_terminated_seller_is_noop(self, sample_index):
        sample_index.find("B").setStatus(MemberStatus.TERMINATED)
        result = CommissionService(sample_index).recordSale("B", 500.0)

        assert result["success"] is False

    def test_inactive_upline_still_credited(self, sample_index):
        """TEST: status only gates selling, not receiving."""
        sample_index.find("A").setStatus(MemberStatus.INACTIVE)
        CommissionService(sample_index).recordSale("E", 300.0)

        assert sample_index.find("A").balance > 0.0

    def test_weights_non_increasing_and_normalized(self, sample_index):
        """TEST: for k uplines, root-first shares are non-increasing and sum to 1."""
        service = CommissionService(sample_index)
        for k in range(1, 30):
            shares = service.uplineWeights(k)
            assert len(shares) == k
            assert sum(shares) == pytest.approx(1.0)
            assert all(a >= b for a, b in zip(shares, shares[1:]))

        assert service.uplineWeights(0) == []

    def test_exponent_from_config(self, sample_index):
        """TEST: UPLINE_WEIGHT_EXPONENT changes the decay; 0 splits evenly."""
        Config.set(Config.UPLINE_WEIGHT_EXPONENT, 0.0)
        service = CommissionService(sample_index)

        assert service.weightExponent == 0.0
        assert service.uplineWeights(4) == pytest.approx([0.25] * 4)

    def test_explicit_exponent_overrides_config(self, sample_index):
        Config.set(Config.UPLINE_WEIGHT_EXPONENT, 0.0)
        service = CommissionService(sample_index, weightExponent=1.0)

        assert service.uplineWeights(2) == pytest.approx([2 / 3, 1 / 3])

    def test_negative_amount_rejected(self, sample_index):
        with pytest.raises(InvalidAmount):
            CommissionService(sample_index).recordSale("E", -1.0)

    @pytest.mark.parametrize("amount", [float("nan"), float("inf")])
    def test_non_finite_amount_rejected(self, sample_index, amount):
        """TEST: NaN and infinity never reach a balance."""
        with pytest.raises(InvalidAmount):
            CommissionService(sample_index).recordSale("E", amount)

        assert balances(sample_index, "E", "B", "A", "C") == [0.0, 0.0, 0.0, 0.0]
        assert sample_index.find("E").ownSales == 0.0

    @pytest.mark.parametrize("exponent", [-1.0, float("nan"), float("inf")])
    def test_invalid_exponent_rejected(self, sample_index, exponent):
        with pytest.raises(ValueError, match="exponent"):
            CommissionService(sample_index, weightExponent=exponent)

    def test_invalid_exponent_from_config_rejected(self, sample_index):
        Config.set(Config.UPLINE_WEIGHT_EXPONENT, "-1")

        with pytest.raises(ValueError, match="exponent"):
            CommissionService(sample_index)

    def test_unknown_seller(self, sample_index):
        with pytest.raises(MemberNotFound):
            CommissionService(sample_index).recordSale("missing", 1.0)


# =============================================================================
# TEST CLASS: recordSale (explicit percentages)
# =============================================================================

class TestRecordSaleExplicit:
    """Tests for recordSale with caller percentages (normalized, root-first)."""

    def test_percentages_normalized_root_first(self, sample_index):
        """TEST: [2, 1, 1] over pool 100 -> Company 50, Alice 25, Bob 25."""
        result = CommissionService(sample_index).recordSale("E", 100.0, [2.0, 1.0, 1.0])

        assert balances(sample_index, "C", "A", "B") == pytest.approx([50.0, 25.0, 25.0])
        assert result["totalDistributed"] == pytest.approx(100.0)

    def test_ordering_differs_from_position_distribution(self, sample_index):
        """TEST: explicit index 0 is the root, position index 0 is the sponsor."""
        service = CommissionService(sample_index)
        service.recordSale("E", 100.0, [1.0, 0.0, 0.0])

        assert sample_index.find("C").balance == pytest.approx(100.0)
        assert sample_index.find("B").balance == 0.0

        service.distributeByPosition("E", 100.0, [1.0])
        assert sample_index.find("B").balance == pytest.approx(100.0)

    def test_zero_sum_distributes_nothing(self, sample_index):
        """TEST: percentages summing to 0 -> self-commission only."""
        sample_index.find("E").setCommissionRate(0.1)
        result = CommissionService(sample_index).recordSale("E", 100.0, [0.0, 0.0])

        assert sample_index.find("E").balance == pytest.approx(10.0)
        assert sum(balances(sample_index, "C", "A", "B")) == 0.0
        assert result["commissions"] == []
        assert sample_index.find("E").ownSales == 100.0

    def test_entries_beyond_chain_undistributed(self, sample_index):
        """TEST: normalized shares past the root are reported, not credited."""
        result = CommissionService(sample_index).recordSale("A", 100.0, [1.0, 1.0])

        assert sample_index.find("C").balance == pytest.approx(50.0)
        assert result["undistributed"] == pytest.approx(50.0)

    def test_commission_levels_count_from_seller(self, sample_index):
        result = CommissionService(sample_index).recordSale("E", 90.0, [1.0, 1.0, 1.0])

        levels = {c["memberId"]: c["level"] for c in result["commissions"]}
        assert levels == {"C": 3, "A": 2, "B": 1}
