"""Sample documents for trying the checker without your own input."""

SAMPLES = {
    1: (
        "According to a recent study published in Nature, "
        "[scientists have discovered](https://www.nature.com/articles/fake123) that drinking "
        "coffee can improve memory by 45%. The research was conducted at "
        "[Harvard University](https://www.harvard.edu) and involved over 10,000 participants.\n\n"
        "The findings suggest that "
        "[caffeine molecules](https://www.ncbi.nlm.nih.gov/pmc/articles/fake456) interact "
        "directly with brain cells to enhance cognitive function. This groundbreaking discovery "
        "was [featured in major news outlets](https://www.bbc.com/news/fake789) worldwide."
    ),
    2: (
        "The [World Health Organization](https://www.who.int) recently announced that a new "
        "vaccine has been developed with 100% effectiveness. According to "
        "[Dr. Smith from Stanford](https://med.stanford.edu/profiles/fake), clinical trials "
        "showed no side effects.\n\n"
        "This vaccine was approved by the [FDA](https://www.fda.gov) in record time and is now "
        "available in all countries. [Research papers](https://www.thelancet.com/journals/fake) "
        "confirm these remarkable results."
    ),
}
