from enum import Enum


class ModelCategory(str, Enum):
    """Kind of prediction task a trained artifact performs."""

    BINOMIAL = "Binomial"
    MULTINOMIAL = "Multinomial"
    REGRESSION = "Regression"
    CLUSTERING = "Clustering"
    AUTOENCODER = "AutoEncoder"
    DIM_REDUCTION = "DimReduction"
    WORD_EMBEDDING = "WordEmbedding"
    UNKNOWN = "Unknown"

    @property
    def is_classification(self) -> bool:
        return self in (ModelCategory.BINOMIAL, ModelCategory.MULTINOMIAL)
