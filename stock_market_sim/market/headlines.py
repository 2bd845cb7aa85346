# Headline pools keyed by (scope, polarity), one set for events and one for
# routine news. Placeholders: {company}, {symbol}, {sector}.

EVENT_HEADLINES = {
    ("instrument", "positive"): [
        "{company} Secures Major Government Contract",
        "{company} Announces Revolutionary Product",
        "{company} Exceeds Earnings Expectations by 30%",
        "{company} Patent Approved for Breakthrough Technology",
        "Activist Investor Takes Large Stake in {company}",
    ],
    ("instrument", "negative"): [
        "{company} Products Recalled Due to Safety Concerns",
        "{company} Loses Major Lawsuit",
        "{company} Earnings Fall Short of Expectations",
        "{company} Announces Major Restructuring",
        "CEO of {company} Resigns Amid Controversy",
    ],
    ("sector", "positive"): [
        "New Legislation Expected to Boost {sector} Sector",
        "International Agreement Benefits {sector} Companies",
        "Consumer Demand Surges for {sector} Products",
        "Research Breakthrough for {sector} Industry",
        "Favorable Tax Changes for {sector} Businesses",
    ],
    ("sector", "negative"): [
        "New Regulations Impact {sector} Companies",
        "Supply Chain Disruptions Hit {sector} Industry",
        "Labor Disputes Spread Across {sector} Sector",
        "Declining Consumer Interest in {sector} Products",
        "Rising Costs Squeeze Margins in {sector} Industry",
    ],
    ("market", "positive"): [
        "Federal Reserve Signals Interest Rate Cut",
        "Unemployment Numbers Drop to Record Low",
        "Major Trade Deal Announced Between Nations",
        "Consumer Confidence Index Reaches 10-Year High",
        "Inflation Data Shows Economy Stabilizing",
    ],
    ("market", "negative"): [
        "Federal Reserve Signals Interest Rate Hike",
        "Unemployment Numbers Rise Unexpectedly",
        "Trade Tensions Escalate Between Major Economies",
        "Consumer Confidence Index Falls Sharply",
        "Inflation Data Raises Economic Concerns",
    ],
}

NEWS_HEADLINES = {
    ("instrument", "positive"): [
        "{company} ({symbol}) Beats Earnings Expectations",
        "{company} Reports Strong Quarterly Results",
        "Analysts Upgrade {company}",
        "{company} Unveils Innovative New Product",
        "{company} Wins Industry Accolades",
    ],
    ("instrument", "negative"): [
        "{company} ({symbol}) Misses Earnings Targets",
        "{company} Faces Challenges in Quarterly Report",
        "Analysts Downgrade {company}",
        "{company} Dealing with Supply-Chain Issues",
        "{company} Faces New Competitive Pressure",
    ],
    ("sector", "positive"): [
        "Analysts Turn Bullish on {sector} Stocks",
        "{sector} Shares Rally on Upbeat Outlook",
        "Fund Managers Rotate Into {sector}",
    ],
    ("sector", "negative"): [
        "{sector} Faces Industry Headwinds",
        "Analysts Trim Forecasts Across {sector}",
        "{sector} Shares Slip on Cautious Guidance",
    ],
    ("market", "positive"): [
        "Stocks Edge Higher in Steady Trading",
        "Investors Shrug Off Rate Worries",
        "Broad Rally Lifts Major Indexes",
    ],
    ("market", "negative"): [
        "Stocks Drift Lower as Investors Turn Cautious",
        "Profit Taking Weighs on Major Indexes",
        "Bond Yields Climb, Pressuring Equities",
    ],
}
